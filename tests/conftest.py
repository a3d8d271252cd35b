from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from actionturn.config import Settings

SCREEN = "actions.capability.SCREEN_OUTPUT"
AUDIO = "actions.capability.AUDIO_OUTPUT"


def _assistant_request(
    intent: str = "actions.intent.MAIN",
    *,
    query: str = "",
    arguments: list[dict[str, Any]] | None = None,
    token: Any = None,
    storage: Any = None,
    user: dict[str, Any] | None = None,
    screen: bool = True,
) -> dict[str, Any]:
    user_record: dict[str, Any] = {"userId": "user-1", "locale": "en-US", **(user or {})}
    if storage is not None:
        user_record["userStorage"] = json.dumps({"data": storage})
    conversation: dict[str, Any] = {"conversationId": "conv-1", "type": "ACTIVE"}
    if token is not None:
        conversation["conversationToken"] = json.dumps({"data": token})
    capabilities = [{"name": AUDIO}] + ([{"name": SCREEN}] if screen else [])
    first_input: dict[str, Any] = {
        "intent": intent,
        "rawInputs": [{"inputType": "VOICE", "query": query}],
    }
    if arguments is not None:
        first_input["arguments"] = arguments
    return {
        "user": user_record,
        "conversation": conversation,
        "inputs": [first_input],
        "surface": {"capabilities": capabilities},
        "isInSandbox": True,
    }


def _dialogflow_v2_request(
    intent: str = "Default Welcome Intent",
    *,
    parameters: dict[str, Any] | None = None,
    contexts: list[dict[str, Any]] | None = None,
    payload: dict[str, Any] | None = None,
    query: str = "hi",
    messages: list[dict[str, Any]] | None = None,
    action: str = "",
) -> dict[str, Any]:
    session = "projects/demo/agent/sessions/s-1"
    return {
        "responseId": "r-1",
        "session": session,
        "queryResult": {
            "queryText": query,
            "action": action,
            "parameters": parameters or {},
            "outputContexts": [
                {**context, "name": f"{session}/contexts/{context['name']}"} for context in contexts or []
            ],
            "intent": {"name": "projects/demo/agent/intents/i-1", "displayName": intent},
            "fulfillmentMessages": messages or [],
            "languageCode": "en",
        },
        "originalDetectIntentRequest": {
            "source": "google",
            "version": "2",
            "payload": _assistant_request("actions.intent.TEXT", query=query) if payload is None else payload,
        },
    }


def _dialogflow_v1_request(
    intent: str = "Default Welcome Intent",
    *,
    parameters: dict[str, Any] | None = None,
    contexts: list[dict[str, Any]] | None = None,
    original: bool = True,
    query: str = "hi",
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": "r-1",
        "sessionId": "s-1",
        "result": {
            "resolvedQuery": query,
            "action": "input.welcome",
            "parameters": parameters or {},
            "contexts": contexts or [],
            "metadata": {"intentName": intent},
            "fulfillment": {"speech": "", "messages": []},
        },
    }
    if original:
        body["originalRequest"] = {"source": "google", "data": _assistant_request("actions.intent.TEXT", query=query)}
    return body


@pytest.fixture
def assistant_request() -> Callable[..., dict[str, Any]]:
    return _assistant_request


@pytest.fixture
def dialogflow_v2_request() -> Callable[..., dict[str, Any]]:
    return _dialogflow_v2_request


@pytest.fixture
def dialogflow_v1_request() -> Callable[..., dict[str, Any]]:
    return _dialogflow_v1_request


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


class FakeVerifier:
    """Stands in for the Google ID token check."""

    def __init__(self, claims: dict[str, Any] | None = None, *, error: Exception | None = None) -> None:
        self.claims = claims or {}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, token: str, audience: str) -> dict[str, Any]:
        self.calls.append((token, audience))
        if self.error is not None:
            raise self.error
        return self.claims


@pytest.fixture
def fake_verifier() -> type[FakeVerifier]:
    return FakeVerifier
