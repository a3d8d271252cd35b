"""Session state codec.

Two independent bags travel through the protocol as opaque JSON strings:

* turn-scoped ``data``, carried by the Actions SDK continuation token or by
  the ``_actions_on_google`` Dialogflow context,
* user-scoped ``storage``, carried by ``user.userStorage``.

Every bag is decoded when the conversation is built and re-encoded when the
turn is serialized. The encoders return ``None`` when the field must be left
out of the outbound payload: the platforms reset lifespans or overwrite
storage on every device when the field is present, so it is only sent when
it actually changed.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from actionturn.contexts import ContextValues
from actionturn.errors import StateDecodeError
from actionturn.types import JsonDict

CONV_DATA_CONTEXT = "_actions_on_google"
CONV_DATA_CONTEXT_LIFESPAN = 99


def dumps(value: Any) -> str:
    """Serialize with the compact separators used on the wire."""

    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _loads(text: str, location: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise StateDecodeError(location, str(exc)) from exc


def _default_copy(default: Mapping[str, Any] | None) -> JsonDict:
    return deepcopy(dict(default or {}))


# Actions SDK conversation token


def serialize_token(data: Any) -> str:
    return dumps({"data": data})


def deserialize_token(body: Mapping[str, Any], default: Mapping[str, Any] | None = None) -> Any:
    """Decode turn data from ``conversation.conversationToken`` or copy the default."""

    conversation = body.get("conversation") or {}
    token = conversation.get("conversationToken")
    if not token:
        return _default_copy(default)
    decoded = _loads(token, "conversation.conversationToken")
    if not isinstance(decoded, dict):
        raise StateDecodeError("conversation.conversationToken", "token is not a JSON object")
    return decoded.get("data")


def encode_token(body: Mapping[str, Any], data: Any, default: Mapping[str, Any] | None = None) -> str | None:
    """Return the outbound conversation token, or ``None`` when it can be omitted.

    The token is omitted only when the outgoing data serializes identically
    to both the bare default and the default-merged incoming value.
    """

    default_serialized = serialize_token(deserialize_token({}, default))
    incoming_serialized = serialize_token(deserialize_token(body, default))
    outgoing = serialize_token(data)
    if outgoing != default_serialized or outgoing != incoming_serialized:
        return outgoing
    return None


# Dialogflow context


def deserialize_context(contexts: ContextValues, default: Mapping[str, Any] | None = None) -> Any:
    """Decode turn data from the ``_actions_on_google`` context or copy the default."""

    context = contexts.get(CONV_DATA_CONTEXT)
    if context:
        data = context.parameters.get("data")
        if isinstance(data, str):
            return _loads(data, f"context {CONV_DATA_CONTEXT}")
    return _default_copy(default)


def encode_context(contexts: ContextValues, data: Any, default: Mapping[str, Any] | None = None) -> str | None:
    """Return the serialized context data, or ``None`` when it did not change."""

    incoming = dumps(deserialize_context(contexts, default))
    outgoing = dumps(data)
    if outgoing != incoming:
        return outgoing
    return None


# User storage


def serialize_storage(storage: Any) -> str:
    return dumps({"data": storage})


def deserialize_storage(user: Mapping[str, Any], initial: Mapping[str, Any] | None = None) -> Any:
    """Decode ``user.userStorage`` or fall back to the initial storage."""

    raw = user.get("userStorage")
    if not raw:
        return _default_copy(initial)
    decoded = _loads(raw, "user.userStorage")
    if not isinstance(decoded, dict):
        raise StateDecodeError("user.userStorage", "storage is not a JSON object")
    return decoded.get("data")


def encode_storage(user: Mapping[str, Any], storage: Any, initial: Mapping[str, Any] | None = None) -> str:
    """Return the outbound user storage, or ``""`` when it is unchanged."""

    incoming = serialize_storage(deserialize_storage(user, initial))
    outgoing = serialize_storage(storage)
    return "" if outgoing == incoming else outgoing
