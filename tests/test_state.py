from __future__ import annotations

import json

import pytest

from actionturn.contexts import ContextValues
from actionturn.errors import StateDecodeError
from actionturn.state import (
    deserialize_context,
    deserialize_storage,
    deserialize_token,
    dumps,
    encode_context,
    encode_storage,
    encode_token,
    serialize_token,
)


def _token_body(data: object) -> dict[str, object]:
    return {"conversation": {"conversationToken": serialize_token(data)}}


def test_token_decode_copies_default_when_absent() -> None:
    default = {"count": 0}
    data = deserialize_token({}, default)

    assert data == {"count": 0}
    data["count"] = 1
    assert default == {"count": 0}


def test_token_round_trip_is_idempotent() -> None:
    value = {"name": "Zoë", "items": [1, 2, {"nested": True}]}
    encoded = serialize_token(value)

    assert serialize_token(deserialize_token({"conversation": {"conversationToken": encoded}})) == encoded
    assert encoded == '{"data":{"name":"Zoë","items":[1,2,{"nested":true}]}}'


def test_token_omitted_when_data_matches_default_and_incoming() -> None:
    assert encode_token({}, {}, None) is None
    assert encode_token({}, {"count": 0}, {"count": 0}) is None


def test_token_emitted_when_data_changed() -> None:
    assert encode_token({}, {"count": 1}, {"count": 0}) == '{"data":{"count":1}}'


def test_token_emitted_when_incoming_differs_from_default() -> None:
    body = _token_body({"count": 3})

    assert encode_token(body, {"count": 3}, {"count": 0}) == '{"data":{"count":3}}'


def test_token_decode_rejects_malformed_json() -> None:
    with pytest.raises(StateDecodeError, match="conversationToken"):
        deserialize_token({"conversation": {"conversationToken": "{not json"}})


def test_context_data_round_trip() -> None:
    contexts = ContextValues(
        [{"name": "s/contexts/_actions_on_google", "lifespanCount": 98, "parameters": {"data": '{"a":1}'}}],
        "s",
    )

    assert deserialize_context(contexts) == {"a": 1}
    assert encode_context(contexts, {"a": 1}) is None
    assert encode_context(contexts, {"a": 2}) == '{"a":2}'


def test_context_data_falls_back_to_default() -> None:
    contexts = ContextValues([], "s")

    assert deserialize_context(contexts, {"count": 0}) == {"count": 0}
    assert encode_context(contexts, {"count": 0}, {"count": 0}) is None


def test_storage_emitted_only_when_changed() -> None:
    user = {"userStorage": json.dumps({"data": {"visits": 1}})}

    assert deserialize_storage(user) == {"visits": 1}
    assert encode_storage(user, {"visits": 1}) == ""
    assert encode_storage(user, {"visits": 2}) == '{"data":{"visits":2}}'
    assert encode_storage({}, {}, None) == ""


def test_storage_decode_rejects_non_object() -> None:
    with pytest.raises(StateDecodeError):
        deserialize_storage({"userStorage": "[1, 2]"})


def test_dumps_is_compact() -> None:
    assert dumps({"a": [1, 2], "b": "é"}) == '{"a":[1,2],"b":"é"}'


def test_context_decode_rejects_malformed_json() -> None:
    contexts = ContextValues(
        [{"name": "s/contexts/_actions_on_google", "lifespanCount": 98, "parameters": {"data": "{not json"}}],
        "s",
    )

    with pytest.raises(StateDecodeError, match="_actions_on_google"):
        deserialize_context(contexts)


def test_storage_decode_rejects_malformed_json() -> None:
    with pytest.raises(StateDecodeError, match="userStorage"):
        deserialize_storage({"userStorage": "{not json"})


def test_default_copy_is_deep() -> None:
    default = {"items": []}
    data = deserialize_token({}, default)
    data["items"].append("x")

    assert default == {"items": []}
    assert encode_token({}, data, default) == '{"data":{"items":["x"]}}'
