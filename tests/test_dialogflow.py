from __future__ import annotations

import json

import pytest

from actionturn import dialogflow
from actionturn.dialogflow import SIMULATOR_WARNING, DialogflowConversation, coerce_parameter, is_simulator
from actionturn.helpers import SignIn
from actionturn.response import BasicCard, SimpleResponse

SESSION = "projects/demo/agent/sessions/s-1"


def _app(settings, **options):
    return dialogflow(settings=settings, **options)


@pytest.mark.asyncio
async def test_v2_turn_wraps_google_payload(settings, dialogflow_v2_request) -> None:
    app = _app(settings)
    app.intent("Default Welcome Intent", lambda conv: conv.ask("Hi"))

    response = await app.handle(dialogflow_v2_request())

    assert response.status == 200
    assert response.body == {
        "payload": {
            "google": {
                "expectUserResponse": True,
                "richResponse": {"items": [{"simpleResponse": {"textToSpeech": "Hi"}}]},
            }
        }
    }


@pytest.mark.asyncio
async def test_v1_turn_wraps_google_data(settings, dialogflow_v1_request) -> None:
    app = _app(settings)
    app.intent("Default Welcome Intent", lambda conv: conv.close("Bye"))

    response = await app.handle(dialogflow_v1_request())

    assert response.body == {
        "data": {
            "google": {
                "expectUserResponse": False,
                "richResponse": {"items": [{"simpleResponse": {"textToSpeech": "Bye"}}]},
            }
        }
    }


@pytest.mark.asyncio
async def test_helper_becomes_system_intent(settings, dialogflow_v2_request) -> None:
    app = _app(settings)
    app.intent("Sign In", lambda conv: conv.ask(SignIn("To know you")))

    response = await app.handle(dialogflow_v2_request("Sign In"))

    assert response.body["payload"]["google"] == {
        "expectUserResponse": True,
        "systemIntent": {
            "intent": "actions.intent.SIGN_IN",
            "data": {
                "@type": "type.googleapis.com/google.actions.v2.SignInValueSpec",
                "optContext": "To know you",
            },
        },
    }


@pytest.mark.asyncio
async def test_simulator_speech_uses_single_simple_response(settings, dialogflow_v2_request) -> None:
    app = _app(settings)
    app.intent("Default Welcome Intent", lambda conv: conv.ask(SimpleResponse("spoken", text="shown")))

    response = await app.handle(dialogflow_v2_request(payload={}))

    assert response.body["fulfillmentText"] == "shown"


@pytest.mark.asyncio
async def test_simulator_speech_warns_for_rich_turns(settings, dialogflow_v2_request, dialogflow_v1_request) -> None:
    app = _app(settings)
    app.intent("Default Welcome Intent", lambda conv: conv.ask("Look", BasicCard(title="Card")))

    v2 = await app.handle(dialogflow_v2_request(payload={}))
    v1 = await app.handle(dialogflow_v1_request(original=False))

    assert v2.body["fulfillmentText"] == SIMULATOR_WARNING
    assert v1.body["speech"] == SIMULATOR_WARNING


def test_is_simulator_detection(dialogflow_v2_request, dialogflow_v1_request) -> None:
    assert is_simulator(dialogflow_v2_request(payload={})) is True
    assert is_simulator(dialogflow_v2_request()) is False
    assert is_simulator(dialogflow_v1_request(original=False)) is True
    assert is_simulator(dialogflow_v1_request()) is False


@pytest.mark.asyncio
async def test_turn_data_written_to_context_when_changed(settings, dialogflow_v2_request) -> None:
    app = _app(settings, init=lambda: {"data": {"step": 0}})

    @app.intent("Next")
    def next_step(conv):
        conv.data["step"] += 1
        conv.ask(f"step {conv.data['step']}")

    response = await app.handle(dialogflow_v2_request("Next"))

    assert response.body["outputContexts"] == [
        {
            "name": f"{SESSION}/contexts/_actions_on_google",
            "lifespanCount": 99,
            "parameters": {"data": '{"step":1}'},
        }
    ]


@pytest.mark.asyncio
async def test_turn_data_read_from_context_and_left_alone_when_unchanged(settings, dialogflow_v2_request) -> None:
    seen: list[object] = []
    app = _app(settings, init=lambda: {"data": {"step": 0}})

    @app.intent("Read")
    def read(conv):
        seen.append(dict(conv.data))
        conv.ask("ok")

    body = dialogflow_v2_request(
        "Read",
        contexts=[{"name": "_actions_on_google", "lifespanCount": 98, "parameters": {"data": json.dumps({"step": 4})}}],
    )
    response = await app.handle(body)

    assert seen == [{"step": 4}]
    assert "outputContexts" not in response.body


@pytest.mark.asyncio
async def test_handler_receives_coerced_parameters(settings, dialogflow_v2_request) -> None:
    seen: list[object] = []
    app = _app(settings)

    @app.intent("Order")
    def order(conv, params, argument, status):
        seen.append((params, argument, status))
        conv.close("done")

    body = dialogflow_v2_request(
        "Order",
        parameters={"count": 3, "gift": True, "size": 4.0, "weight": 2.5, "name": "tea", "date": {"year": 2020}},
    )
    await app.handle(body)

    assert seen == [
        (
            {"count": "3", "gift": "true", "size": "4", "weight": "2.5", "name": "tea", "date": {"year": 2020}},
            None,
            None,
        )
    ]


def test_coerce_parameter_keeps_structures() -> None:
    assert coerce_parameter(["a"]) == ["a"]
    assert coerce_parameter(None) is None
    assert coerce_parameter(False) == "false"


@pytest.mark.asyncio
async def test_followup_v2_skips_payload_and_keeps_contexts(settings, dialogflow_v2_request) -> None:
    app = _app(settings)

    @app.intent("Jump")
    def jump(conv):
        conv.contexts.set("jumped", 2)
        conv.followup("land", {"height": "3"})

    response = await app.handle(dialogflow_v2_request("Jump"))

    assert response.body == {
        "followupEventInput": {"name": "land", "parameters": {"height": "3"}, "languageCode": "en"},
        "outputContexts": [{"name": f"{SESSION}/contexts/jumped", "lifespanCount": 2}],
    }


@pytest.mark.asyncio
async def test_followup_v1_uses_followup_event(settings, dialogflow_v1_request) -> None:
    app = _app(settings)
    app.intent("Jump", lambda conv: conv.followup("land", {"height": "3"}))

    response = await app.handle(dialogflow_v1_request("Jump"))

    assert response.body == {"followupEvent": {"name": "land", "data": {"height": "3"}}}


@pytest.mark.asyncio
async def test_v1_contexts_serialized_with_lifespan(settings, dialogflow_v1_request) -> None:
    app = _app(settings)

    @app.intent("Remember")
    def remember(conv):
        assert conv.contexts.get("previous").parameters == {"color": "red"}
        conv.contexts.set("color", 5, {"value": "blue"})
        conv.contexts.delete("previous")
        conv.ask("noted")

    body = dialogflow_v1_request(
        "Remember",
        contexts=[{"name": "previous", "lifespan": 1, "parameters": {"color": "red"}}],
    )
    response = await app.handle(body)

    assert response.body["contextOut"] == [
        {"name": "color", "lifespan": 5, "parameters": {"value": "blue"}},
        {"name": "previous", "lifespan": 0},
    ]


def test_conversation_exposes_dialogflow_fields(dialogflow_v2_request) -> None:
    body = dialogflow_v2_request(
        "Weather",
        action="weather.get",
        query="weather today",
        messages=[
            {"text": {"text": ["Console text"]}},
            {"platform": "SLACK", "text": {"text": ["ignored"]}},
        ],
    )

    conv = DialogflowConversation(body=body)

    assert conv.version == 2
    assert conv.intent == "Weather"
    assert conv.action == "weather.get"
    assert conv.query == "weather today"
    assert conv.input.raw == "weather today"
    assert conv.incoming.get(str) == "Console text"
    assert list(conv.incoming) == ["Console text"]


def test_v1_conversation_reads_metadata(dialogflow_v1_request) -> None:
    conv = DialogflowConversation(body=dialogflow_v1_request("Weather", query="rain?"))

    assert conv.version == 1
    assert conv.intent == "Weather"
    assert conv.action == "input.welcome"
    assert conv.query == "rain?"


@pytest.mark.asyncio
async def test_header_verification(settings, dialogflow_v2_request) -> None:
    app = _app(settings, verification={"X-Secret": "s3cret"})
    app.intent("Default Welcome Intent", lambda conv: conv.ask("Hi"))

    missing = await app.handle(dialogflow_v2_request(), {})
    wrong = await app.handle(dialogflow_v2_request(), {"x-secret": "nope"})
    ok = await app.handle(dialogflow_v2_request(), {"X-SECRET": "s3cret"})

    assert missing.status == 403
    assert missing.body == {"error": "A verification header key was not found"}
    assert missing.headers["content-type"] == "application/json;charset=utf-8"
    assert wrong.body == {"error": "A verification header value was invalid"}
    assert ok.status == 200


@pytest.mark.asyncio
async def test_header_verification_custom_status_and_error(settings, dialogflow_v2_request) -> None:
    handled: list[str] = []
    app = _app(
        settings,
        verification={"headers": {"key": "value"}, "status": 401, "error": lambda message: f"denied: {message}"},
    )
    app.intent("Default Welcome Intent", lambda conv: handled.append("called"))

    response = await app.handle(dialogflow_v2_request(), {"key": ["other", "also-wrong"]})

    assert response.status == 401
    assert response.body == {"error": "denied: A verification header value was invalid"}
    assert handled == []


@pytest.mark.asyncio
async def test_header_verification_accepts_multi_valued_header(settings, dialogflow_v2_request) -> None:
    app = _app(settings, verification={"headers": {"key": "value"}, "error": "nope"})
    app.intent("Default Welcome Intent", lambda conv: conv.ask("Hi"))

    response = await app.handle(dialogflow_v2_request(), {"key": ["other", "value"]})

    assert response.status == 200


@pytest.mark.asyncio
async def test_profile_verified_before_middleware(settings, dialogflow_v2_request, assistant_request, fake_verifier) -> None:
    seen: list[object] = []
    verifier = fake_verifier({"email": "ada@example.com"})
    settings.client_id = "client-1"
    app = _app(settings, verifier=verifier)

    @app.middleware
    def record(conv):
        seen.append(conv.user.email)

    app.intent("Default Welcome Intent", lambda conv: conv.ask("Hi"))

    payload = assistant_request("actions.intent.TEXT", user={"idToken": "jwt"})
    await app.handle(dialogflow_v2_request(payload=payload))

    assert seen == ["ada@example.com"]
