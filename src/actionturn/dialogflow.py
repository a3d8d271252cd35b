"""Dialogflow v1 and v2 fulfillment webhook."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

from actionturn.app import ConversationApp
from actionturn.contexts import ContextValues
from actionturn.conversation import Conversation
from actionturn.incoming import Incoming
from actionturn.state import CONV_DATA_CONTEXT, CONV_DATA_CONTEXT_LIFESPAN, deserialize_context, encode_context
from actionturn.types import Headers, JsonDict, Metadata
from actionturn.verification import HeaderVerification

SIMULATOR_WARNING = (
    "Cannot display response in Dialogflow simulator. "
    "Please test on the Google Assistant simulator instead."
)


def is_v1(body: Mapping[str, Any]) -> bool:
    return bool(body.get("result"))


def is_simulator(body: Mapping[str, Any]) -> bool:
    """Requests typed into the Dialogflow console carry no Assistant payload."""

    if is_v1(body):
        return not body.get("originalRequest")
    original = body.get("originalDetectIntentRequest")
    if not original:
        return False
    return not original.get("payload") and bool(body.get("responseId"))


def assistant_request(body: Mapping[str, Any]) -> JsonDict:
    """Extract the embedded Assistant request from a Dialogflow body."""

    if is_v1(body):
        return (body.get("originalRequest") or {}).get("data") or {}
    return (body.get("originalDetectIntentRequest") or {}).get("payload") or {}


def coerce_parameter(value: Any) -> Any:
    """Render scalar parameters as strings; objects, lists and ``None`` pass."""

    match value:
        case dict() | list() | None:
            return value
        case bool():
            return "true" if value else "false"
        case float() if value.is_integer():
            return str(int(value))
        case _:
            return str(value)


def simulator_speech(google: Mapping[str, Any]) -> str:
    items = (google.get("richResponse") or {}).get("items") or []
    if not google.get("systemIntent") and len(items) < 2:
        for item in items:
            simple = item.get("simpleResponse")
            if simple:
                return simple.get("displayText") or simple.get("textToSpeech")
    return SIMULATOR_WARNING


class DialogflowConversation(Conversation):
    """Conversation whose turn data rides in the ``_actions_on_google`` context."""

    def __init__(
        self,
        *,
        body: Mapping[str, Any] | None = None,
        headers: Headers | None = None,
        init: Mapping[str, Any] | None = None,
        orders_v3: bool = False,
    ) -> None:
        self.body: JsonDict = dict(body or {})
        super().__init__(request=assistant_request(self.body), headers=headers, init=init, orders_v3=orders_v3)
        self._followup: JsonDict | None = None

        if is_v1(self.body):
            self.version = 1
            result = self.body.get("result") or {}
            self.action: str = result.get("action") or ""
            self.intent: str = (result.get("metadata") or {}).get("intentName") or ""
            parameters = result.get("parameters") or {}
            self.contexts = ContextValues(result.get("contexts"))
            self.incoming = Incoming(result.get("fulfillment"))
            self.query: str = result.get("resolvedQuery") or ""
        else:
            self.version = 2
            result = self.body.get("queryResult") or {}
            self.action = result.get("action") or ""
            self.intent = (result.get("intent") or {}).get("displayName") or ""
            parameters = result.get("parameters") or {}
            self.contexts = ContextValues(result.get("outputContexts"), self.body.get("session"))
            self.incoming = Incoming(result.get("fulfillmentMessages"))
            self.query = result.get("queryText") or ""

        self.parameters: JsonDict = {key: coerce_parameter(value) for key, value in parameters.items()}
        self.data = deserialize_context(self.contexts, self._init.get("data"))

    def followup(self, event: str, parameters: Mapping[str, Any] | None = None, lang: str | None = None) -> Self:
        """Trigger the Dialogflow event ``event`` instead of replying."""

        self._responded = True
        if self.version == 1:
            self._followup = {"name": event, "data": dict(parameters) if parameters is not None else None}
            return self
        query_result = self.body.get("queryResult") or {}
        self._followup = {
            "name": event,
            "parameters": dict(parameters) if parameters is not None else None,
            "languageCode": lang or query_result.get("languageCode"),
        }
        return self

    def _google_payload(self) -> JsonDict:
        final = self.response()
        google: JsonDict = {"expectUserResponse": final.expect_user_response}
        if final.expected_intent is not None:
            google["systemIntent"] = {
                "intent": final.expected_intent.intent,
                "data": final.expected_intent.input_value_data,
            }
        if final.no_input_prompts:
            google["noInputPrompts"] = [prompt.to_wire() for prompt in final.no_input_prompts]
        if final.speech_biasing_hints:
            google["speechBiasingHints"] = final.speech_biasing_hints
        if final.rich_response.items:
            google["richResponse"] = final.rich_response.to_wire()
        if final.user_storage:
            google["userStorage"] = final.user_storage
        return {"google": google}

    def serialize(self) -> JsonDict:
        if self._raw is not None:
            return self._raw
        payload: JsonDict | None = None
        if self._followup is not None:
            self.digested = True
        else:
            payload = self._google_payload()

        data = encode_context(self.contexts, self.data, self._init.get("data"))
        if data is not None:
            # writing the context restarts its lifespan
            self.contexts.set(CONV_DATA_CONTEXT, CONV_DATA_CONTEXT_LIFESPAN, {"data": data})

        speech = simulator_speech(payload["google"]) if payload and is_simulator(self.body) else None
        if self.version == 1:
            response: JsonDict = {"data": payload, "followupEvent": _compact(self._followup)}
            context_out = self.contexts.serialize_v1()
            if context_out:
                response["contextOut"] = context_out
            response["speech"] = speech
        else:
            response = {"payload": payload, "followupEventInput": _compact(self._followup)}
            output_contexts = self.contexts.serialize()
            if output_contexts:
                response["outputContexts"] = output_contexts
            response["fulfillmentText"] = speech
        return {key: value for key, value in response.items() if value is not None}


def _compact(value: JsonDict | None) -> JsonDict | None:
    if value is None:
        return None
    return {key: item for key, item in value.items() if item is not None}


class DialogflowApp(ConversationApp):
    """Routes on the matched intent's display name; handlers get ``(conv, params, argument, status)``."""

    handler_label = "Dialogflow IntentHandler"

    def build_conversation(self, body: JsonDict, headers: Headers) -> DialogflowConversation:
        return DialogflowConversation(
            body=body,
            headers=headers,
            init=self.init_values(),
            orders_v3=self.settings.orders_v3,
        )

    def intent_of(self, conv: DialogflowConversation) -> str:
        return conv.intent

    def handler_args(self, conv: DialogflowConversation) -> tuple[Any, ...]:
        return (conv.parameters, *conv.arguments.first())

    async def prepare(self, conv: Conversation, metadata: Metadata) -> Conversation:
        await self.verify_profile(conv)
        return await self.apply_middleware(conv, metadata)

    def _coerce_verification(self, value: Any) -> HeaderVerification:
        return HeaderVerification.coerce(value, status=self.settings.verification_status)


def dialogflow(**options: Any) -> DialogflowApp:
    """Create a Dialogflow app; see :class:`ConversationApp` for options."""

    return DialogflowApp(**options)
