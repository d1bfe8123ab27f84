from __future__ import annotations

from typing import List, Mapping

from lsprotocol import types

from .contexts import ContextRegistration
from .index import Index, IndexNode
from .resolver import DEFAULT_CONTEXT_LINES, resolve, text_window

TRIGGER_SUGGEST = types.Command(title="", command="editor.action.triggerSuggest")


def materialize(
    candidates: Mapping[str, IndexNode],
    token: str,
    prefix: str = "",
) -> List[types.CompletionItem]:
    add_prefix = bool(prefix) and token == prefix
    items: list[types.CompletionItem] = []
    for node in candidates.values():
        text = f"{prefix}{node.label}" if add_prefix else node.label
        items.append(
            types.CompletionItem(
                label=node.label,
                kind=types.CompletionItemKind.Constant,
                detail=node.detail,
                insert_text=text,
                filter_text=text,
                command=TRIGGER_SUGGEST if node.is_group else None,
            )
        )
    return items


def completion_items_for_context(
    index: Index,
    context: ContextRegistration,
    source: str,
    line: int,
    character: int,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> List[types.CompletionItem]:
    text = text_window(source, line, character, context_lines)
    resolution = resolve(text, context.pattern, index.separator, index.root)
    if resolution is None:
        return []
    return materialize(resolution.candidates, resolution.token, context.prefix)
