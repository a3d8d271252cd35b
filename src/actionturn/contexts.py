"""Dialogflow contexts threaded through consecutive turns."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from actionturn.types import JsonDict


@dataclass
class Context:
    """One named context with its lifespan and parameters."""

    name: str
    lifespan: int | None = None
    parameters: JsonDict = field(default_factory=dict)


def _short_name(name: str) -> str:
    # v2 names are full session paths: projects/p/agent/sessions/s/contexts/name
    return name.rsplit("/", 1)[-1] if name else name


class ContextValues:
    """Incoming contexts from the previous turn and outgoing ones for this turn."""

    def __init__(self, output_contexts: Iterable[Mapping[str, Any]] | None = None, session: str | None = None) -> None:
        self._session = session
        self.input: dict[str, Context] = {}
        self.output: dict[str, Context] = {}
        for context in output_contexts or []:
            name = context.get("name", "")
            parameters = dict(context.get("parameters") or {})
            if isinstance(context.get("lifespan"), int):
                self.input[name] = Context(name=name, lifespan=context["lifespan"], parameters=parameters)
                continue
            self.input[_short_name(name)] = Context(
                name=name,
                lifespan=context.get("lifespanCount"),
                parameters=parameters,
            )

    def get(self, name: str) -> Context | None:
        """Return the incoming context ``name``, if the previous turn set it."""

        return self.input.get(name)

    def set(self, name: str, lifespan: int, parameters: Mapping[str, Any] | None = None) -> None:
        """Set an outgoing context for the next turn."""

        self.output[name] = Context(
            name=name,
            lifespan=lifespan,
            parameters=dict(parameters) if parameters is not None else {},
        )

    def delete(self, name: str) -> None:
        """Expire a context; lifespan 0 tells Dialogflow to drop it."""

        self.output[name] = Context(name=name, lifespan=0)

    def __iter__(self) -> Iterator[Context]:
        return iter(list(self.input.values()))

    def serialize(self) -> list[JsonDict]:
        """Outgoing contexts in the Dialogflow v2 shape."""

        contexts: list[JsonDict] = []
        for name, context in self.output.items():
            item: JsonDict = {"name": f"{self._session}/contexts/{name}", "lifespanCount": context.lifespan}
            if context.parameters:
                item["parameters"] = context.parameters
            contexts.append(item)
        return contexts

    def serialize_v1(self) -> list[JsonDict]:
        """Outgoing contexts in the Dialogflow v1 shape."""

        contexts: list[JsonDict] = []
        for name, context in self.output.items():
            item: JsonDict = {"name": name, "lifespan": context.lifespan}
            if context.parameters:
                item["parameters"] = context.parameters
            contexts.append(item)
        return contexts
