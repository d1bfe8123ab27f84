from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Union

log = logging.getLogger(__name__)

# Keys that only host nested variants; their own declaration text is noise.
STRUCTURAL_KEYS = frozenset({"container", "group"})
STATE_KEYS = ("hover", "focus", "active")
GROUP_HOVER_KEY = "group-hover"
GROUP_HOVER_DETAIL = ".group:hover &"


class NodeKind(str, Enum):
    LEAF = "leaf"
    GROUP = "group"


@dataclass(frozen=True)
class RawLeaf:
    value: Any


@dataclass(frozen=True)
class RawGroup:
    children: Dict[str, "RawValue"]


RawValue = Union[RawLeaf, RawGroup]


@dataclass(frozen=True)
class IndexNode:
    label: str
    kind: NodeKind
    detail: str | None = None
    children: Dict[str, "IndexNode"] = field(default_factory=dict)

    @property
    def is_group(self) -> bool:
        return self.kind is NodeKind.GROUP


@dataclass(frozen=True)
class Index:
    root: Dict[str, IndexNode]
    separator: str = ":"
    screens: Dict[str, str] = field(default_factory=dict)


def tag(raw: Any) -> RawValue:
    """Tag a raw class-name value once so later passes never inspect its shape."""
    if isinstance(raw, Mapping):
        return RawGroup({str(key): tag(value) for key, value in raw.items()})
    return RawLeaf(raw)


def depth_of(value: RawValue) -> int:
    if isinstance(value, RawLeaf):
        return 0
    level = 1
    for child in value.children.values():
        if isinstance(child, RawGroup):
            level = max(level, depth_of(child) + 1)
    return level


def build_index(raw: Any, separator: str = ":", screens: Mapping[str, Any] | None = None) -> Index:
    screen_map = _screen_map(screens)
    tagged = tag(raw)
    if not isinstance(tagged, RawGroup):
        log.debug("Class-name root is not a mapping (%s); building an empty index", type(raw).__name__)
        return Index(root={}, separator=separator, screens=screen_map)
    root = build_nodes(tagged, separator, screen_map)
    log.debug("Built index with %d root entries", len(root))
    return Index(root=root, separator=separator, screens=screen_map)


def build_nodes(
    group: RawGroup,
    separator: str,
    screens: Mapping[str, str],
    parent: str = "",
) -> Dict[str, IndexNode]:
    nodes: dict[str, IndexNode] = {}
    for key, value in group.children.items():
        if depth_of(value) == 0:
            nodes[key] = IndexNode(label=key, kind=NodeKind.LEAF, detail=_leaf_detail(key, value, parent))
        else:
            nodes[key] = IndexNode(
                label=f"{key}{separator}",
                kind=NodeKind.GROUP,
                detail=_group_detail(key, screens),
                children=build_nodes(value, separator, screens, parent=key),
            )
    return nodes


def _leaf_detail(key: str, value: RawValue, parent: str) -> str | None:
    if key in STRUCTURAL_KEYS:
        return None
    if not isinstance(value, RawLeaf) or not isinstance(value.value, str):
        return None
    text = value.value
    if parent:
        # ":hover { color: red }" under "hover" reads better as "color: red"
        text = re.sub(rf":{re.escape(parent)} \{{(.*?)\}}", r"\1", text, count=1)
    return text


def _group_detail(key: str, screens: Mapping[str, str]) -> str | None:
    if key in STATE_KEYS:
        return f":{key}"
    if key == GROUP_HOVER_KEY:
        return GROUP_HOVER_DETAIL
    if key in screens:
        return f"@media (min-width: {screens[key]})"
    return None


def _screen_map(screens: Mapping[str, Any] | None) -> Dict[str, str]:
    if not isinstance(screens, Mapping):
        return {}
    result: dict[str, str] = {}
    for name, value in screens.items():
        if isinstance(value, (str, int, float)):
            result[str(name)] = str(value)
        else:
            log.debug("Ignoring screen %s with unsupported value %r", name, value)
    return result
