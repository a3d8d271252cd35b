"""Intent routing over a handler graph with string redirects."""

from __future__ import annotations

import inspect
from collections.abc import Iterable
from typing import Any

from loguru import logger

from actionturn.errors import CircularRedirectError, ConfigurationError, HandlerNotFoundError
from actionturn.types import Handler

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def call_with_arity(func: Handler, *args: Any) -> Any:
    """Call ``func`` with as many leading positional arguments as it accepts."""

    try:
        parameters = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return func(*args)
    if any(parameter.kind is inspect.Parameter.VAR_POSITIONAL for parameter in parameters):
        return func(*args)
    accepted = sum(1 for parameter in parameters if parameter.kind in _POSITIONAL)
    return func(*args[:accepted])


async def invoke(func: Handler, *args: Any) -> Any:
    """Call a plain or async callable and await its result when needed."""

    value = call_with_arity(func, *args)
    if inspect.isawaitable(value):
        value = await value
    return value


class HandlerTable:
    """Directed graph from intent names to handlers or redirect targets."""

    def __init__(self, label: str = "IntentHandler") -> None:
        self.label = label
        self._routes: dict[str, Handler | str] = {}
        self.fallback: Handler | None = None

    def register(self, intents: str | Iterable[str], target: Handler | str) -> None:
        if not isinstance(target, str) and not callable(target):
            raise ConfigurationError(f"intent target must be a handler or an intent name, got {target!r}")
        names = [intents] if isinstance(intents, str) else list(intents)
        for name in names:
            self._routes[name] = target

    def get(self, name: str) -> Handler | str | None:
        return self._routes.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def handlers(self) -> dict[str, Handler]:
        return {name: target for name, target in self._routes.items() if not isinstance(target, str)}

    def redirects(self) -> dict[str, str]:
        return {name: target for name, target in self._routes.items() if isinstance(target, str)}

    def resolve(self, intent: str) -> Handler:
        """Follow redirects from ``intent`` until a handler is found.

        Raises:
            HandlerNotFoundError: nothing matched and no fallback is registered.
            CircularRedirectError: a redirect target was reached twice.
        """

        traversed: set[str] = set()
        target = self._routes.get(intent)
        while not callable(target):
            if target is None:
                if self.fallback is None:
                    if not intent:
                        raise HandlerNotFoundError(
                            intent, "No intent was provided and fallback handler is not defined."
                        )
                    raise HandlerNotFoundError(intent, f"{self.label} not found for intent: {intent}")
                logger.debug("router.fallback intent={}", intent)
                target = self.fallback
                continue
            if target in traversed:
                raise CircularRedirectError(target)
            traversed.add(target)
            logger.debug("router.redirect intent={} target={}", intent, target)
            target = self._routes.get(target)
        return target
