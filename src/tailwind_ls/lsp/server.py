from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List

from lsprotocol import types
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from .. import __version__
from ..acquisition import NodeClassNamesAcquirer
from ..config import TailwindLSConfig, load_config
from ..contexts import all_trigger_characters
from ..lifecycle import CompletionLifecycle
from ..registry import ProviderRegistry

log = logging.getLogger(__name__)

WATCHER_REGISTRATION_ID = "tailwind-ls.watch-config"

# Used when the client opens a document without a language id.
EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascriptreact",
    ".tsx": "typescriptreact",
    ".css": "css",
    ".sass": "sass",
    ".scss": "scss",
    ".html": "html",
    ".htm": "html",
    ".jade": "jade",
    ".cshtml": "razor",
    ".php": "php",
    ".vue": "vue",
    ".twig": "twig",
    ".md": "markdown",
    ".erb": "erb",
    ".hbs": "handlebars",
    ".handlebars": "handlebars",
    ".ejs": "ejs",
}


class TailwindLanguageServer(LanguageServer):
    def __init__(self) -> None:
        super().__init__("tailwind-ls", __version__)
        self._config: TailwindLSConfig | None = None
        self.registry = ProviderRegistry()
        self.lifecycle = CompletionLifecycle(NodeClassNamesAcquirer(None), self.registry)

    @property
    def config(self) -> TailwindLSConfig | None:
        return self._config

    def load_workspace(self, root: Path | None) -> None:
        if root is None:
            self._config = None
            self.lifecycle.configure(NodeClassNamesAcquirer(None))
            return
        config, warnings = load_config(root)
        for warning in warnings:
            log.warning(warning)
        self._config = config
        self.lifecycle.configure(NodeClassNamesAcquirer(config), context_lines=config.context_lines)


server = TailwindLanguageServer()


@server.feature(types.INITIALIZE)
def on_initialize(ls: TailwindLanguageServer, params: types.InitializeParams):
    options = params.initialization_options
    if isinstance(options, dict):
        _apply_log_level(options.get("logLevel"))
    ls.load_workspace(_workspace_root(params))


@server.feature(types.INITIALIZED)
async def on_initialized(ls: TailwindLanguageServer, params: types.InitializedParams):
    await _register_config_watcher(ls)
    await ls.lifecycle.start()


@server.feature(types.WORKSPACE_DID_CHANGE_WATCHED_FILES)
async def on_watched_files(ls: TailwindLanguageServer, params: types.DidChangeWatchedFilesParams):
    log.debug("Config files changed: %s", [change.uri for change in params.changes])
    await ls.lifecycle.reload()


@server.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=all_trigger_characters()),
)
def on_completion(ls: TailwindLanguageServer, params: types.CompletionParams) -> List[types.CompletionItem]:
    doc = ls.workspace.get_text_document(params.text_document.uri)
    trigger = None
    if params.context and params.context.trigger_kind == types.CompletionTriggerKind.TriggerCharacter:
        trigger = params.context.trigger_character
    return ls.registry.complete(
        _language_id(doc.language_id, doc.uri),
        doc.source,
        params.position.line,
        params.position.character,
        trigger,
    )


async def _register_config_watcher(ls: TailwindLanguageServer) -> None:
    config = ls.config
    if config is None or not _supports_watcher_registration(ls.client_capabilities):
        return
    registration = types.Registration(
        id=WATCHER_REGISTRATION_ID,
        method=types.WORKSPACE_DID_CHANGE_WATCHED_FILES,
        register_options=types.DidChangeWatchedFilesRegistrationOptions(
            watchers=[types.FileSystemWatcher(glob_pattern=config.watch_glob)],
        ),
    )
    try:
        await ls.client_register_capability_async(types.RegistrationParams(registrations=[registration]))
    except Exception as exc:
        log.warning("Client refused config file watcher: %s", exc)


def _supports_watcher_registration(capabilities: types.ClientCapabilities | None) -> bool:
    workspace = capabilities.workspace if capabilities else None
    watched = workspace.did_change_watched_files if workspace else None
    return bool(watched and watched.dynamic_registration)


def _workspace_root(params: types.InitializeParams) -> Path | None:
    if params.workspace_folders:
        return _uri_path(params.workspace_folders[0].uri)
    if params.root_uri:
        return _uri_path(params.root_uri)
    if params.root_path:
        return Path(params.root_path)
    return None


def _uri_path(uri: str) -> Path | None:
    path = to_fs_path(uri)
    return Path(path) if path else None


def _language_id(language_id: str | None, uri: str) -> str | None:
    if language_id:
        return language_id
    return EXTENSION_LANGUAGES.get(Path(uri).suffix.lower())


def _apply_log_level(raw: Any) -> None:
    if not isinstance(raw, str):
        return
    level = getattr(logging, raw.upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


def create_server() -> TailwindLanguageServer:
    return server
