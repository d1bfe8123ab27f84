from pathlib import Path

import pytest
from lsprotocol import types
from pygls.workspace import Workspace

from tailwind_ls.acquisition import AcquisitionFailure, StyleConfig, TailwindData
from tailwind_ls.lifecycle import LifecycleState
from tailwind_ls.lsp.server import TailwindLanguageServer, on_completion, on_watched_files

CLASS_NAMES = {"text-red": "color: red", "hover": {"text-red": "color: red"}}


def _server_with_doc(source: str, uri: str, language_id: str = "javascript") -> TailwindLanguageServer:
    server = TailwindLanguageServer()
    server.load_workspace(Path("."))
    server.protocol._workspace = Workspace(None, sync_kind=types.TextDocumentSyncKind.Incremental)
    server.protocol.workspace.put_text_document(
        types.TextDocumentItem(uri=uri, language_id=language_id, version=1, text=source)
    )
    return server


def _params(uri: str, line: int, character: int, trigger: str | None = None) -> types.CompletionParams:
    context = None
    if trigger is not None:
        context = types.CompletionContext(
            trigger_kind=types.CompletionTriggerKind.TriggerCharacter,
            trigger_character=trigger,
        )
    return types.CompletionParams(
        text_document=types.TextDocumentIdentifier(uri=uri),
        position=types.Position(line=line, character=character),
        context=context,
    )


def test_completion_round_trip_integration():
    code = "const btn = tw`p-2 hover:"
    uri = "file:///completion.jsx"
    server = _server_with_doc(code, uri)
    server.lifecycle.apply(TailwindData(config=StyleConfig(), class_names=CLASS_NAMES))

    items = on_completion(server, _params(uri, 0, len(code), trigger=":"))

    assert [item.label for item in items] == ["text-red"]
    assert items[0].detail == "color: red"


def test_completion_uses_extension_when_language_missing():
    code = '<div class="'
    uri = "file:///page.html"
    server = _server_with_doc(code, uri, language_id="")
    server.lifecycle.apply(TailwindData(config=StyleConfig(), class_names=CLASS_NAMES))

    items = on_completion(server, _params(uri, 0, len(code)))

    assert {item.label for item in items} == {"text-red", "hover:"}


def test_completion_is_empty_before_load():
    code = "tw`"
    uri = "file:///empty.js"
    server = _server_with_doc(code, uri)

    assert on_completion(server, _params(uri, 0, len(code))) == []


@pytest.mark.asyncio
async def test_watched_file_change_reloads():
    code = "tw`focus:"
    uri = "file:///reload.js"
    server = _server_with_doc(code, uri)
    server.lifecycle.apply(TailwindData(config=StyleConfig(), class_names=CLASS_NAMES))

    async def acquire():
        return TailwindData(config=StyleConfig(), class_names={"focus": {"outline": "outline: 0"}})

    server.lifecycle.configure(acquire)
    change = types.FileEvent(uri="file:///tailwind.js", type=types.FileChangeType.Changed)
    await on_watched_files(server, types.DidChangeWatchedFilesParams(changes=[change]))

    assert [item.label for item in on_completion(server, _params(uri, 0, len(code)))] == ["outline"]
    assert len(server.registry.active) == 3


@pytest.mark.asyncio
async def test_watched_file_delete_unloads():
    uri = "file:///gone.js"
    server = _server_with_doc("tw`", uri)
    server.lifecycle.apply(TailwindData(config=StyleConfig(), class_names=CLASS_NAMES))

    async def acquire():
        raise AcquisitionFailure("config deleted")

    server.lifecycle.configure(acquire)
    change = types.FileEvent(uri="file:///tailwind.js", type=types.FileChangeType.Deleted)
    await on_watched_files(server, types.DidChangeWatchedFilesParams(changes=[change]))

    assert server.lifecycle.state is LifecycleState.UNLOADED
    assert on_completion(server, _params(uri, 0, 3)) == []
