from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .resolver import DEFAULT_CONTEXT_LINES

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".tailwind-ls.json"
ASSETS_DIR = Path(__file__).resolve().parent / "assets"
CLASS_NAMES_SCRIPT = ASSETS_DIR / "class_names.js"

DEFAULT_CONFIG_NAMES = ("tailwind.js", "tailwind.config.js", ".tailwindrc.js")
DEFAULT_EXCLUDE_DIRS = ("node_modules",)
DEFAULT_ACQUIRE_TIMEOUT = 30.0


def _default_command() -> Tuple[str, ...]:
    return ("node", str(CLASS_NAMES_SCRIPT))


@dataclass(frozen=True)
class TailwindLSConfig:
    workspace_root: Path
    config_names: Tuple[str, ...] = DEFAULT_CONFIG_NAMES
    exclude_dirs: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    context_lines: int = DEFAULT_CONTEXT_LINES
    class_names_command: Tuple[str, ...] = field(default_factory=_default_command)
    acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT

    @classmethod
    def default(cls, workspace_root: Path) -> "TailwindLSConfig":
        return cls(workspace_root=workspace_root)

    @property
    def watch_glob(self) -> str:
        stems = ",".join(name[: -len(".js")] if name.endswith(".js") else name for name in self.config_names)
        return f"**/{{{stems}}}.js"

    @property
    def library_root(self) -> Path:
        return self.workspace_root / "node_modules" / "tailwindcss"


def load_config(workspace_root: Path) -> tuple[TailwindLSConfig, List[str]]:
    """Load ``.tailwind-ls.json`` from the workspace root, falling back to defaults."""
    cfg = TailwindLSConfig.default(workspace_root)
    path = workspace_root / CONFIG_FILENAME
    if not path.exists():
        return cfg, []

    warnings: list[str] = []
    try:
        raw = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        warnings.append(f"Failed to read {CONFIG_FILENAME}: {exc}")
        return cfg, warnings
    if not isinstance(raw, dict):
        warnings.append(f"{CONFIG_FILENAME} must contain a JSON object")
        return cfg, warnings

    raw = _substitute(raw, {"workspaceRoot": str(workspace_root)})
    return _apply(cfg, raw, warnings), warnings


def _apply(cfg: TailwindLSConfig, raw: Dict[str, Any], warnings: List[str]) -> TailwindLSConfig:
    updates: dict[str, Any] = {}

    names = raw.get("configNames")
    if names is not None:
        if _is_str_list(names) and names:
            updates["config_names"] = tuple(names)
        else:
            warnings.append("configNames must be a non-empty list of file names")

    exclude = raw.get("excludeDirs")
    if exclude is not None:
        if _is_str_list(exclude):
            updates["exclude_dirs"] = tuple(exclude)
        else:
            warnings.append("excludeDirs must be a list of directory names")

    lines = raw.get("contextLines")
    if lines is not None:
        if isinstance(lines, int) and not isinstance(lines, bool) and lines >= 0:
            updates["context_lines"] = lines
        else:
            warnings.append("contextLines must be a non-negative integer")

    command = raw.get("classNamesCommand")
    if command is not None:
        if _is_str_list(command) and command:
            updates["class_names_command"] = tuple(command)
        else:
            warnings.append("classNamesCommand must be a non-empty list of strings")

    timeout = raw.get("acquireTimeout")
    if timeout is not None:
        if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
            updates["acquire_timeout"] = float(timeout)
        else:
            warnings.append("acquireTimeout must be a positive number of seconds")

    for warning in warnings:
        log.debug("Config warning: %s", warning)
    return replace(cfg, **updates)


def _substitute(value: Any, variables: Dict[str, str]) -> Any:
    if isinstance(value, str):
        for name, replacement in variables.items():
            value = value.replace(f"${{{name}}}", replacement)
        return value
    if isinstance(value, list):
        return [_substitute(item, variables) for item in value]
    if isinstance(value, dict):
        return {key: _substitute(item, variables) for key, item in value.items()}
    return value


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)
