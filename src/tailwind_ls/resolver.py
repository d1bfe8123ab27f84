from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from .index import IndexNode

log = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 5
_WHITESPACE_RE = re.compile(r"\s")


@dataclass(frozen=True)
class Resolution:
    candidates: Mapping[str, IndexNode]
    token: str


def text_window(source: str, line: int, character: int, context_lines: int = DEFAULT_CONTEXT_LINES) -> str:
    """Return the text from ``context_lines`` lines above the cursor up to the cursor."""
    lines = source.splitlines(keepends=True)
    if line < 0:
        return ""
    start = max(line - context_lines, 0)
    current = lines[line].rstrip("\r\n")[: max(character, 0)] if line < len(lines) else ""
    return "".join(lines[start:line]) + current


def extract_token(text: str, pattern: re.Pattern[str]) -> str | None:
    last = None
    for last in pattern.finditer(text):
        pass
    if last is None:
        return None
    captured = _last_capture(last)
    parts = _WHITESPACE_RE.split(captured)
    return parts[-1]


def split_path(token: str, separator: str) -> List[str]:
    normalized = token.replace(separator, ".") if separator else token
    if normalized.endswith("."):
        normalized = normalized[:-1]
    if normalized.startswith("."):
        normalized = normalized[1:]
    if not normalized:
        return []
    return normalized.split(".")


def walk(root: Mapping[str, IndexNode], segments: Sequence[str]) -> Mapping[str, IndexNode] | None:
    """Walk ``segments`` from ``root`` and return the candidate mapping, or None on a miss.

    A final segment naming a leaf resolves to the mapping holding that leaf, so a
    fully typed utility still lists its siblings.
    """
    current: Mapping[str, IndexNode] = root
    for position, segment in enumerate(segments):
        node = current.get(segment)
        if node is None:
            return None
        if not node.is_group:
            return current if position == len(segments) - 1 else None
        current = node.children
    return current


def resolve(
    text: str,
    pattern: re.Pattern[str],
    separator: str,
    root: Dict[str, IndexNode],
) -> Resolution | None:
    token = extract_token(text, pattern)
    if token is None:
        return None

    segments = split_path(token, separator)
    if segments:
        candidates = walk(root, segments)
        if candidates is not None:
            return Resolution(candidates=candidates, token=token)
        # TODO: confirm with product whether a partially typed path should list nothing instead
        log.debug("Path %r not found in index; falling back to root candidates", token)
    return Resolution(candidates=root, token=token)


def _last_capture(match: re.Match[str]) -> str:
    for group in reversed(match.groups()):
        if group is not None:
            return group
    return match.group(0)
