"""Pluggy hook namespace and observer hook specifications."""

from __future__ import annotations

from typing import Any

import pluggy

from actionturn.types import Headers, JsonDict, WebhookResponse

ACTIONTURN_HOOK_NAMESPACE = "actionturn"
hookspec = pluggy.HookspecMarker(ACTIONTURN_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(ACTIONTURN_HOOK_NAMESPACE)


class ActionTurnHookSpecs:
    """Hook contract for observers attached to a conversation app."""

    @hookspec
    def on_request(self, body: JsonDict, headers: Headers) -> None:
        """Observe one inbound webhook request before it is verified."""

    @hookspec
    def on_response(self, response: WebhookResponse) -> None:
        """Observe the response produced for one turn."""

    @hookspec
    def on_error(self, stage: str, error: Exception, conversation: Any | None) -> None:
        """Observe failures from any stage of a turn."""
