"""Actions SDK conversation webhook."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from actionturn.app import ConversationApp
from actionturn.conversation import Conversation
from actionturn.state import deserialize_token, encode_token
from actionturn.types import Headers, JsonDict, Metadata
from actionturn.verification import ProjectVerification

TEXT_INTENT = "actions.intent.TEXT"


class ActionsSdkConversation(Conversation):
    """Conversation whose turn data rides in the conversation token."""

    def __init__(
        self,
        *,
        body: Mapping[str, Any] | None = None,
        headers: Headers | None = None,
        init: Mapping[str, Any] | None = None,
        orders_v3: bool = False,
    ) -> None:
        self.body: JsonDict = dict(body or {})
        super().__init__(request=self.body, headers=headers, init=init, orders_v3=orders_v3)
        inputs = self.body.get("inputs") or []
        self.intent: str = (inputs[0].get("intent") if inputs else None) or ""
        self.data = deserialize_token(self.body, self._init.get("data"))

    def serialize(self) -> JsonDict:
        if self._raw is not None:
            return self._raw
        final = self.response()
        rich = final.rich_response

        input_prompt: JsonDict = {}
        if final.no_input_prompts:
            input_prompt["noInputPrompts"] = [prompt.to_wire() for prompt in final.no_input_prompts]
        if rich.items:
            input_prompt["richInitialPrompt"] = rich.to_wire()
        expected_intent = final.expected_intent.to_wire() if final.expected_intent else {"intent": TEXT_INTENT}
        expected_input: JsonDict = {}
        if input_prompt:
            expected_input["inputPrompt"] = input_prompt
        expected_input["possibleIntents"] = [expected_intent]
        if final.speech_biasing_hints:
            expected_input["speechBiasingHints"] = final.speech_biasing_hints

        payload: JsonDict = {"expectUserResponse": final.expect_user_response}
        if final.expect_user_response:
            payload["expectedInputs"] = [expected_input]
        else:
            payload["finalResponse"] = {"richResponse": rich.to_wire()}
        token = encode_token(self.body, self.data, self._init.get("data"))
        if token is not None:
            payload["conversationToken"] = token
        if final.user_storage:
            payload["userStorage"] = final.user_storage
        return payload


class ActionsSdkApp(ConversationApp):
    """Routes on ``inputs[0].intent``; handlers get ``(conv, query, argument, status)``."""

    def build_conversation(self, body: JsonDict, headers: Headers) -> ActionsSdkConversation:
        return ActionsSdkConversation(
            body=body,
            headers=headers,
            init=self.init_values(),
            orders_v3=self.settings.orders_v3,
        )

    def intent_of(self, conv: ActionsSdkConversation) -> str:
        return conv.intent

    def handler_args(self, conv: ActionsSdkConversation) -> tuple[Any, ...]:
        return (conv.input.raw, *conv.arguments.first())

    async def prepare(self, conv: Conversation, metadata: Metadata) -> Conversation:
        conv = await self.apply_middleware(conv, metadata)
        await self.verify_profile(conv)
        return conv

    def _coerce_verification(self, value: Any) -> ProjectVerification:
        return ProjectVerification.coerce(
            value,
            status=self.settings.verification_status,
            verifier=self.verifier,
        )


def actionssdk(**options: Any) -> ActionsSdkApp:
    """Create an Actions SDK app; see :class:`ConversationApp` for options."""

    return ActionsSdkApp(**options)
