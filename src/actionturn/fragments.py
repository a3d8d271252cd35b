"""Closed set of fragment kinds accumulated by a conversation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

from actionturn.helpers import Helper
from actionturn.response import (
    BasicCard,
    BrowseCarousel,
    Image,
    LinkOutSuggestion,
    MediaObject,
    MediaResponse,
    OrderUpdate,
    RichResponse,
    Suggestions,
    Table,
)


@dataclass(frozen=True)
class Text:
    """Plain string, spoken and displayed as a simple response."""

    value: str


@dataclass(frozen=True)
class SystemIntent:
    """Helper requesting a secondary capability; the last one wins."""

    helper: Helper


@dataclass(frozen=True)
class RichOverride:
    """Fully formed rich response replacing everything accumulated so far."""

    rich: RichResponse


@dataclass(frozen=True)
class Chips:
    """Suggestion chips appended to the running suggestion list."""

    suggestions: Suggestions


@dataclass(frozen=True)
class Display:
    """Visual item that needs a simple response next to it."""

    item: Any


@dataclass(frozen=True)
class Passthrough:
    """Anything else, added to the rich response as is."""

    item: Any


Fragment: TypeAlias = Text | SystemIntent | RichOverride | Chips | Display | Passthrough


def classify(value: Any) -> Fragment:
    """Map one accumulated value onto its fragment kind."""

    match value:
        case str():
            return Text(value)
        case Helper():
            return SystemIntent(value)
        case RichResponse():
            return RichOverride(value)
        case Suggestions():
            return Chips(value)
        case Image():
            return Display(BasicCard(image=value))
        case MediaObject():
            return Display(MediaResponse(value))
        case BasicCard() | Table() | BrowseCarousel() | MediaResponse() | OrderUpdate() | LinkOutSuggestion():
            return Display(value)
        case _:
            return Passthrough(value)
