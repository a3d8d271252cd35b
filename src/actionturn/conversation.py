"""Conversation aggregate and the response accumulation state machine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Self, TypeAlias

from loguru import logger

from actionturn.arguments import Arguments
from actionturn.errors import NoResponseError, ResponseDigestedError, SimpleResponseRequiredError
from actionturn.fragments import Chips, Display, Passthrough, RichOverride, SystemIntent, Text, classify
from actionturn.helpers import ORDERS_V3_TYPES, Helper
from actionturn.response import RichResponse, SimpleResponse
from actionturn.state import deserialize_storage, encode_storage
from actionturn.types import Headers, JsonDict

SCREEN_OUTPUT = "actions.capability.SCREEN_OUTPUT"

TokenVerifier: TypeAlias = Callable[[str, str], Awaitable[JsonDict]]


class Input:
    """Primary raw input of the turn (what the user said or typed)."""

    def __init__(self, raw_input: Mapping[str, Any] | None = None) -> None:
        raw_input = raw_input or {}
        self.raw: str | None = raw_input.get("query")
        self.type: str | None = raw_input.get("inputType")


class Surface:
    """Capabilities of the surface the user is talking through."""

    def __init__(self, surface: Mapping[str, Any] | None = None) -> None:
        surface = surface or {}
        self.capabilities: set[str] = {item.get("name", "") for item in surface.get("capabilities") or []}

    def has(self, capability: str) -> bool:
        return capability in self.capabilities


class Available:
    """Other surfaces of the same user that could continue the conversation."""

    def __init__(self, surfaces: Iterable[Mapping[str, Any]] | None = None) -> None:
        self.surfaces = [Surface(surface) for surface in surfaces or []]

    def has(self, capability: str) -> bool:
        return any(surface.has(capability) for surface in self.surfaces)


class Device:
    def __init__(self, device: Mapping[str, Any] | None = None) -> None:
        device = device or {}
        self.location: JsonDict | None = device.get("location")


@dataclass
class Name:
    display: str | None = None
    family: str | None = None
    given: str | None = None


@dataclass
class Profile:
    token: str | None = None
    payload: JsonDict | None = None


class User:
    """User descriptor plus the user-scoped storage bag."""

    def __init__(self, raw: Mapping[str, Any] | None = None, initial: Mapping[str, Any] | None = None) -> None:
        self.raw: JsonDict = dict(raw or {})
        self.storage: Any = deserialize_storage(self.raw, initial)
        self.id: str | None = self.raw.get("userId")
        self.locale: str | None = self.raw.get("locale")
        self.verification: str | None = self.raw.get("userVerificationStatus")
        self.permissions: list[str] = list(self.raw.get("permissions") or [])
        self.entitlements: list[JsonDict] = list(self.raw.get("packageEntitlements") or [])
        self.access_token: str | None = self.raw.get("accessToken")
        last_seen = self.raw.get("lastSeen")
        self.last_seen: datetime | None = (
            datetime.fromisoformat(last_seen.replace("Z", "+00:00")) if last_seen else None
        )
        profile = self.raw.get("profile") or {}
        self.name = Name(
            display=profile.get("displayName"),
            family=profile.get("familyName"),
            given=profile.get("givenName"),
        )
        self.profile = Profile(token=self.raw.get("idToken"))
        self.email: str | None = None

    async def verify_profile(self, verifier: TokenVerifier, client_id: str) -> JsonDict:
        """Verify the profile ID token and expose the decoded email."""

        payload = await verifier(self.profile.token or "", client_id)
        self.profile.payload = payload
        self.email = payload.get("email")
        return payload


@dataclass
class FinalResponse:
    """Merged and validated output of one turn."""

    expect_user_response: bool
    rich_response: RichResponse
    user_storage: str = ""
    expected_intent: Helper | None = None
    no_input_prompts: list[SimpleResponse] | None = None
    speech_biasing_hints: list[str] | None = None


class Conversation(ABC):
    """Mutable aggregate for one turn.

    Handlers call :meth:`add`, :meth:`ask` or :meth:`close` any number of
    times. The serializer calls :meth:`response` exactly once, after which the
    conversation is digested and refuses further fragments.
    """

    def __init__(
        self,
        *,
        request: Mapping[str, Any] | None = None,
        headers: Headers | None = None,
        init: Mapping[str, Any] | None = None,
        orders_v3: bool = False,
    ) -> None:
        self.responses: list[Any] = []
        self.expect_user_response = True
        self.digested = False
        self.no_inputs: list[str | SimpleResponse] = []
        self.speech_biasing: list[str] = []
        self._responded = False
        self._raw: JsonDict | None = None
        self._orders_v3 = orders_v3

        self.request: JsonDict = dict(request or {})
        self.headers: Headers = headers or {}
        self._init: Mapping[str, Any] = init or {}
        self.sandbox = bool(self.request.get("isInSandbox"))

        inputs = self.request.get("inputs") or []
        first_input = inputs[0] if inputs else {}
        raw_inputs = first_input.get("rawInputs") or []
        self.input = Input(raw_inputs[0] if raw_inputs else None)
        self.surface = Surface(self.request.get("surface"))
        self.available = Available(self.request.get("availableSurfaces"))
        self.user = User(self.request.get("user"), self._init.get("storage"))
        self.arguments = Arguments(first_input.get("arguments"))
        self.device = Device(self.request.get("device"))

        conversation = self.request.get("conversation") or {}
        self.id: str | None = conversation.get("conversationId")
        self.type: str | None = conversation.get("type")
        self.screen = self.surface.has(SCREEN_OUTPUT)
        self.data: Any = {}

    @property
    def responded(self) -> bool:
        return self._responded

    def json(self, raw: JsonDict) -> Self:
        """Send ``raw`` as the response body, bypassing the accumulator."""

        self._raw = raw
        self._responded = True
        return self

    def add(self, *responses: Any) -> Self:
        if self.digested:
            raise ResponseDigestedError(
                "Response has already been sent. "
                "Is this being used in an async call that was not awaited by the intent handler?"
            )
        self.responses.extend(responses)
        self._responded = True
        return self

    def ask(self, *responses: Any) -> Self:
        """Respond and keep the microphone open for the user's answer."""

        self.expect_user_response = True
        return self.add(*responses)

    def close(self, *responses: Any) -> Self:
        """Respond and end the conversation."""

        self.expect_user_response = False
        return self.add(*responses)

    @abstractmethod
    def serialize(self) -> JsonDict:
        """Render the platform wire body for this turn."""

    def response(self) -> FinalResponse:
        """Digest the accumulated fragments into one validated response."""

        if not self._responded:
            raise NoResponseError()
        if self.digested:
            raise ResponseDigestedError("Response has already been digested")
        self.digested = True

        rich = RichResponse()
        expected_intent: Helper | None = None
        require_simple = False
        for value in self.responses:
            match classify(value):
                case Text(value=text):
                    rich.add(text)
                case SystemIntent(helper=helper):
                    if not helper.solo:
                        require_simple = True
                    if expected_intent is not None:
                        logger.warning(
                            "conversation.helper_replaced previous={} current={}",
                            expected_intent.intent,
                            helper.intent,
                        )
                    if self._orders_v3 and type(helper) in ORDERS_V3_TYPES:
                        helper.input_value_data["@type"] = ORDERS_V3_TYPES[type(helper)]
                    expected_intent = helper
                case RichOverride(rich=replacement):
                    rich = replacement
                case Chips(suggestions=chips):
                    require_simple = True
                    rich.add_suggestion(chips)
                case Display(item=item):
                    require_simple = True
                    rich.add(item)
                case Passthrough(item=item):
                    rich.add(item)

        if self._orders_v3:
            for item in rich.items:
                if item.structured_response and "orderUpdate" in item.structured_response:
                    item.structured_response = {"orderUpdateV3": item.structured_response["orderUpdate"]}

        if require_simple and not rich.has_simple_response():
            raise SimpleResponseRequiredError()

        no_input_prompts = [
            SimpleResponse(prompt) if isinstance(prompt, str) else prompt for prompt in self.no_inputs
        ]
        return FinalResponse(
            expect_user_response=self.expect_user_response,
            rich_response=rich,
            user_storage=encode_storage(self.user.raw, self.user.storage, self._init.get("storage")),
            expected_intent=expected_intent,
            no_input_prompts=no_input_prompts or None,
            speech_biasing_hints=list(self.speech_biasing) or None,
        )
