from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Any, List, Sequence

from .acquisition import Acquirer, TailwindData, TailwindLSError, UnsupportedSeparator
from .completions import completion_items_for_context
from .contexts import CONTEXTS, DEFAULT_SEPARATOR, ContextRegistration
from .index import Index, build_index
from .registry import ProviderRegistry, Registration
from .resolver import DEFAULT_CONTEXT_LINES

log = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


class CompletionLifecycle:
    """Owns the live index and the completion providers bound to it.

    Every reload disposes the previous providers before installing new ones, and
    providers are only created once their index is fully built.
    """

    def __init__(
        self,
        acquirer: Acquirer,
        registry: ProviderRegistry,
        contexts: Sequence[ContextRegistration] = CONTEXTS,
        context_lines: int = DEFAULT_CONTEXT_LINES,
    ):
        self._acquirer = acquirer
        self._registry = registry
        self._contexts = tuple(contexts)
        self._context_lines = context_lines
        self._index: Index | None = None
        self._registrations: List[Registration] = []
        self._generation = 0

    @property
    def state(self) -> LifecycleState:
        return LifecycleState.LOADED if self._registrations else LifecycleState.UNLOADED

    @property
    def index(self) -> Index | None:
        return self._index

    @property
    def registrations(self) -> List[Registration]:
        return list(self._registrations)

    def configure(self, acquirer: Acquirer, context_lines: int | None = None) -> None:
        self._acquirer = acquirer
        if context_lines is not None:
            self._context_lines = context_lines

    async def start(self) -> LifecycleState:
        return await self.reload()

    async def reload(self) -> LifecycleState:
        self._generation += 1
        generation = self._generation
        try:
            data = await self._acquirer()
        except TailwindLSError as exc:
            if generation != self._generation:
                log.debug("Discarding failed reload #%d; a newer reload started", generation)
                return self.state
            log.info("Class names unavailable: %s", exc)
            self.dispose()
            return self.state

        if generation != self._generation:
            log.debug("Discarding reload #%d; a newer reload started", generation)
            return self.state
        self.apply(data)
        return self.state

    def apply(self, data: TailwindData) -> None:
        """Swap in ``data``: dispose the current providers, then build and install."""
        self.dispose()
        try:
            _check_separator(data.config.separator)
        except UnsupportedSeparator as exc:
            log.debug("%s", exc)
            return

        index = build_index(data.class_names, data.config.separator, data.config.screens)
        self._index = index
        self._registrations = [
            self._registry.register(context, partial(self._provide, index, context))
            for context in self._contexts
        ]
        log.info("Installed %d completion providers (%d root classes)", len(self._registrations), len(index.root))

    def dispose(self) -> None:
        registrations, self._registrations = self._registrations, []
        for registration in registrations:
            registration.dispose()
        self._index = None

    def _provide(self, index: Index, context: ContextRegistration, source: str, line: int, character: int):
        return completion_items_for_context(index, context, source, line, character, self._context_lines)


def _check_separator(separator: Any) -> None:
    if separator != DEFAULT_SEPARATOR:
        raise UnsupportedSeparator(separator)
