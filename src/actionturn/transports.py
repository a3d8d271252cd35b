"""Transport matchers that adapt hosting-specific calls to ``app.handle``."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from loguru import logger

from actionturn.types import Headers, JsonDict, Metadata, WebhookResponse


class TurnHandler(Protocol):
    async def handle(
        self,
        body: JsonDict,
        headers: Mapping[str, Any] | None = None,
        metadata: Metadata | None = None,
    ) -> WebhookResponse: ...


class TransportMatcher(Protocol):
    """Recognizes the call signature of one hosting environment."""

    name: str

    def check(self, *args: Any) -> bool: ...

    async def handle(self, app: TurnHandler, *args: Any) -> Any: ...


class LambdaTransport:
    """AWS Lambda proxy integration: ``(event, context)`` in, proxy result out."""

    name = "lambda"

    def check(self, *args: Any) -> bool:
        if len(args) != 2 or not isinstance(args[0], Mapping):
            return False
        return callable(getattr(args[1], "get_remaining_time_in_millis", None))

    async def handle(self, app: TurnHandler, *args: Any) -> JsonDict:
        event, context = args
        headers: Headers = {}
        body: Any = event
        if isinstance(event.get("headers"), Mapping):
            headers = {str(key).lower(): value for key, value in event["headers"].items()}
            body = event.get("body")
        if isinstance(body, str):
            body = json.loads(body)
        response = await app.handle(body or {}, headers, {"lambda": {"event": event, "context": context}})
        return {
            "statusCode": response.status,
            "body": json.dumps(response.body),
            "headers": response.headers,
        }


async def dispatch(app: TurnHandler, *args: Any, transports: Sequence[TransportMatcher] = ()) -> Any:
    """Hand the call to the first transport that recognizes it.

    Without a match the arguments are passed to ``app.handle`` as
    ``(body, headers, metadata)``.
    """

    for transport in transports:
        if transport.check(*args):
            logger.debug("transport.matched name={}", transport.name)
            return await transport.handle(app, *args)
    return await app.handle(*args)
