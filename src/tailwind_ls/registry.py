from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from lsprotocol import types

from .contexts import ContextRegistration

log = logging.getLogger(__name__)

Provider = Callable[[str, int, int], List[types.CompletionItem]]

_ids = itertools.count(1)


@dataclass
class Registration:
    """An installed completion provider; disposing it more than once is a no-op."""

    context: ContextRegistration
    provider: Provider
    registry: "ProviderRegistry"
    id: int = field(default_factory=lambda: next(_ids))
    disposed: bool = False

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.registry._remove(self)


class ProviderRegistry:
    def __init__(self) -> None:
        self._active: Dict[int, Registration] = {}

    def register(self, context: ContextRegistration, provider: Provider) -> Registration:
        registration = Registration(context=context, provider=provider, registry=self)
        self._active[registration.id] = registration
        log.debug("Registered completion provider %s (#%d)", context.name, registration.id)
        return registration

    def _remove(self, registration: Registration) -> None:
        if self._active.pop(registration.id, None) is not None:
            log.debug("Disposed completion provider %s (#%d)", registration.context.name, registration.id)

    @property
    def active(self) -> List[Registration]:
        return list(self._active.values())

    def providers_for(self, language_id: str | None, trigger_character: str | None = None) -> List[Registration]:
        return [
            reg
            for reg in self._active.values()
            if reg.context.applies_to(language_id) and reg.context.accepts_trigger(trigger_character)
        ]

    def complete(
        self,
        language_id: str | None,
        source: str,
        line: int,
        character: int,
        trigger_character: str | None = None,
    ) -> List[types.CompletionItem]:
        items: list[types.CompletionItem] = []
        for reg in self.providers_for(language_id, trigger_character):
            items.extend(reg.provider(source, line, character))
        return items
