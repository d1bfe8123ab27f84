from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Tuple

DEFAULT_SEPARATOR = ":"

JSX_LANGUAGES = frozenset({"typescriptreact", "javascript", "javascriptreact"})
STYLESHEET_LANGUAGES = frozenset({"css", "sass", "scss"})
MARKUP_LANGUAGES = frozenset(
    {
        "html",
        "jade",
        "razor",
        "php",
        "blade",
        "vue",
        "twig",
        "markdown",
        "erb",
        "handlebars",
        "ejs",
    }
) | JSX_LANGUAGES


@dataclass(frozen=True)
class ContextRegistration:
    """One place in source text where utility-class completion applies."""

    name: str
    languages: frozenset[str]
    pattern: re.Pattern[str]
    trigger_characters: Tuple[str, ...]
    prefix: str = ""

    def applies_to(self, language_id: str | None) -> bool:
        return language_id in self.languages

    def accepts_trigger(self, trigger_character: str | None) -> bool:
        return trigger_character is None or trigger_character in self.trigger_characters


TEMPLATE_LITERAL = ContextRegistration(
    name="tw-template",
    languages=JSX_LANGUAGES,
    pattern=re.compile(r"\btw`([^`]*)$"),
    trigger_characters=("`", " ", DEFAULT_SEPARATOR),
)

APPLY_DIRECTIVE = ContextRegistration(
    name="css-apply",
    languages=STYLESHEET_LANGUAGES,
    pattern=re.compile(r"@apply ([^;}]*)$"),
    trigger_characters=(".", DEFAULT_SEPARATOR),
    prefix=".",
)

CLASS_ATTRIBUTE = ContextRegistration(
    name="class-attribute",
    languages=MARKUP_LANGUAGES,
    pattern=re.compile(r"\bclass(Name)?=[\"']([^\"']*)"),
    trigger_characters=("'", '"', " ", DEFAULT_SEPARATOR),
)

CONTEXTS: Tuple[ContextRegistration, ...] = (TEMPLATE_LITERAL, APPLY_DIRECTIVE, CLASS_ATTRIBUTE)


def all_trigger_characters(contexts: Iterable[ContextRegistration] = CONTEXTS) -> list[str]:
    seen: list[str] = []
    for context in contexts:
        for ch in context.trigger_characters:
            if ch not in seen:
                seen.append(ch)
    return seen
