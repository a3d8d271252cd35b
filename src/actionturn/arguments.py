"""Argument extraction from the primary input of a turn."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from actionturn.types import JsonDict

_NON_VALUE_FIELDS = frozenset({"name", "status", "textValue"})


def argument_value(argument: JsonDict) -> Any:
    """Pick the interesting value out of one raw argument record.

    The first payload field wins; ``textValue`` is only used when no other
    payload field is present.
    """

    for key, value in argument.items():
        if key in _NON_VALUE_FIELDS:
            continue
        return value
    # PERMISSION is sometimes sent without its boolValue
    if argument.get("name") == "PERMISSION":
        return bool(argument.get("boolValue"))
    return argument.get("textValue")


class Parsed:
    """Argument values, positional and by name."""

    def __init__(self, raw: list[JsonDict]) -> None:
        self.input: dict[str, Any] = {}
        self.list: list[Any] = []
        for argument in raw:
            value = argument_value(argument)
            self.input[argument.get("name", "")] = value
            self.list.append(value)

    def get(self, name: str) -> Any:
        return self.input.get(name)


class Status:
    """Argument statuses, positional and by name."""

    def __init__(self, raw: list[JsonDict]) -> None:
        self.input: dict[str, Any] = {}
        self.list: list[Any] = []
        for argument in raw:
            status = argument.get("status")
            self.input[argument.get("name", "")] = status
            self.list.append(status)

    def get(self, name: str) -> Any:
        return self.input.get(name)


class Raw:
    """Untouched argument records, positional and by name."""

    def __init__(self, raw: list[JsonDict]) -> None:
        self.list = raw
        self.input: dict[str, JsonDict] = {argument.get("name", ""): argument for argument in raw}

    def get(self, name: str) -> JsonDict | None:
        return self.input.get(name)


class Arguments:
    """Three parallel views over the argument records of the current input."""

    def __init__(self, raw: list[JsonDict] | None = None) -> None:
        records = list(raw or [])
        self.parsed = Parsed(records)
        self.status = Status(records)
        self.raw = Raw(records)

    def get(self, name: str) -> Any:
        return self.parsed.get(name)

    def first(self) -> tuple[Any, Any]:
        """Return the first positional ``(value, status)`` pair, if any."""

        value = self.parsed.list[0] if self.parsed.list else None
        status = self.status.list[0] if self.status.list else None
        return value, status

    def __iter__(self) -> Iterator[JsonDict]:
        return iter(self.raw.list)

    def __len__(self) -> int:
        return len(self.raw.list)
