from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping

from .config import TailwindLSConfig
from .contexts import DEFAULT_SEPARATOR

log = logging.getLogger(__name__)


class TailwindLSError(Exception):
    """Base error for class-name loading problems."""


class AcquisitionFailure(TailwindLSError):
    """No usable class-name data could be produced for the workspace."""


class UnsupportedSeparator(TailwindLSError):
    def __init__(self, separator: Any):
        super().__init__(f"Unsupported separator {separator!r}; only {DEFAULT_SEPARATOR!r} is supported")
        self.separator = separator


@dataclass(frozen=True)
class StyleConfig:
    separator: Any = DEFAULT_SEPARATOR
    screens: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_data(cls, data: Any) -> "StyleConfig":
        if not isinstance(data, Mapping):
            return cls()
        options = data.get("options")
        # only a missing key defaults; explicit values are checked by the lifecycle
        separator = options.get("separator", DEFAULT_SEPARATOR) if isinstance(options, Mapping) else DEFAULT_SEPARATOR
        screens = data.get("screens")
        return cls(
            separator=separator,
            screens=dict(screens) if isinstance(screens, Mapping) else {},
        )


@dataclass(frozen=True)
class TailwindData:
    config: StyleConfig
    class_names: Any

    @classmethod
    def from_payload(cls, payload: Any) -> "TailwindData":
        if not isinstance(payload, Mapping) or "classNames" not in payload:
            raise AcquisitionFailure("Class-name payload is missing 'classNames'")
        if not isinstance(payload["classNames"], Mapping):
            raise AcquisitionFailure("Class-name payload 'classNames' is not an object")
        return cls(config=StyleConfig.from_data(payload.get("config")), class_names=payload["classNames"])


Acquirer = Callable[[], Awaitable[TailwindData]]


def find_config_file(root: Path, names: tuple[str, ...], exclude_dirs: tuple[str, ...] = ("node_modules",)) -> Path | None:
    """Return the first configuration file below ``root``, skipping excluded directories."""
    wanted = set(names)
    excluded = set(exclude_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            if filename in wanted:
                return Path(dirpath) / filename
    return None


class NodeClassNamesAcquirer:
    """Computes the class-name tree by running the bundled node helper in a subprocess."""

    def __init__(self, config: TailwindLSConfig | None):
        self._config = config

    @property
    def config(self) -> TailwindLSConfig | None:
        return self._config

    async def __call__(self) -> TailwindData:
        cfg = self._config
        if cfg is None:
            raise AcquisitionFailure("No workspace is open")
        config_path = await asyncio.to_thread(find_config_file, cfg.workspace_root, cfg.config_names, cfg.exclude_dirs)
        if config_path is None:
            raise AcquisitionFailure(f"No Tailwind config file found under {cfg.workspace_root}")

        argv = [*cfg.class_names_command, str(config_path), str(cfg.library_root)]
        log.info("Loading class names from %s", config_path)
        payload = await _run_json_command(argv, cfg.workspace_root, cfg.acquire_timeout)
        return TailwindData.from_payload(payload)


async def _run_json_command(argv: list[str], cwd: Path, timeout: float) -> Any:
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise AcquisitionFailure(f"Failed to start {argv[0]}: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise AcquisitionFailure(f"{argv[0]} timed out after {timeout:g}s") from exc

    if process.returncode != 0:
        message = stderr.decode(errors="replace").strip()
        raise AcquisitionFailure(f"{argv[0]} exited with {process.returncode}: {message}")

    try:
        return json.loads(stdout.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise AcquisitionFailure(f"{argv[0]} produced invalid JSON: {exc}") from exc
