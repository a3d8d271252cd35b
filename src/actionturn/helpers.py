"""Helper fragments that ask the platform for a secondary capability.

A helper becomes the expected (system) intent of the turn. Solo helpers
carry their own prompt; the others need a simple response next to them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from actionturn.types import JsonDict

_V2 = "type.googleapis.com/google.actions.v2"
_TRANSACTIONS_V3 = "type.googleapis.com/google.actions.transactions.v3"


def compact(value: Any) -> Any:
    """Drop ``None`` entries recursively, as the platform JSON omits them."""

    if isinstance(value, Mapping):
        return {key: compact(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [compact(item) for item in value]
    if hasattr(value, "to_wire"):
        return value.to_wire()
    return value


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]


class Helper:
    """Expected intent with its typed input value spec."""

    solo = False

    def __init__(self, intent: str, value_type: str, data: Mapping[str, Any] | None = None) -> None:
        self.intent = intent
        self.input_value_data: JsonDict = {"@type": value_type, **compact(dict(data or {}))}

    def to_wire(self) -> JsonDict:
        return {"intent": self.intent, "inputValueData": self.input_value_data}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(intent={self.intent!r})"


class SoloHelper(Helper):
    """Helper that can be sent without a simple response."""

    solo = True


class Permission(SoloHelper):
    def __init__(
        self,
        permissions: str | list[str],
        *,
        context: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            "actions.intent.PERMISSION",
            f"{_V2}.PermissionValueSpec",
            {"optContext": context, "permissions": _as_list(permissions), **dict(extra or {})},
        )


class UpdatePermission(Permission):
    def __init__(self, intent: str, arguments: list[JsonDict] | None = None) -> None:
        super().__init__(
            "UPDATE",
            extra={"updatePermissionValueSpec": {"arguments": arguments, "intent": intent}},
        )


class SignIn(SoloHelper):
    def __init__(self, context: str | None = None) -> None:
        super().__init__("actions.intent.SIGN_IN", f"{_V2}.SignInValueSpec", {"optContext": context})


class Confirmation(SoloHelper):
    def __init__(self, text: str) -> None:
        super().__init__(
            "actions.intent.CONFIRMATION",
            f"{_V2}.ConfirmationValueSpec",
            {"dialogSpec": {"requestConfirmationText": text}},
        )


class DateTime(SoloHelper):
    def __init__(self, *, initial: str | None = None, date: str | None = None, time: str | None = None) -> None:
        super().__init__(
            "actions.intent.DATETIME",
            f"{_V2}.DateTimeValueSpec",
            {
                "dialogSpec": {
                    "requestDatetimeText": initial,
                    "requestDateText": date,
                    "requestTimeText": time,
                }
            },
        )


class Place(SoloHelper):
    def __init__(self, *, prompt: str, context: str) -> None:
        super().__init__(
            "actions.intent.PLACE",
            f"{_V2}.PlaceValueSpec",
            {
                "dialogSpec": {
                    "extension": {
                        "@type": f"{_V2}.PlaceValueSpec.PlaceDialogSpec",
                        "permissionContext": context,
                        "requestPrompt": prompt,
                    }
                }
            },
        )


class DeliveryAddress(SoloHelper):
    def __init__(self, *, reason: str | None = None) -> None:
        super().__init__(
            "actions.intent.DELIVERY_ADDRESS",
            f"{_V2}.DeliveryAddressValueSpec",
            {"addressOptions": {"reason": reason}},
        )


class TransactionRequirements(SoloHelper):
    def __init__(self, spec: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            "actions.intent.TRANSACTION_REQUIREMENTS_CHECK",
            f"{_V2}.TransactionRequirementsCheckSpec",
            spec,
        )


class TransactionDecision(SoloHelper):
    def __init__(self, spec: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            "actions.intent.TRANSACTION_DECISION",
            f"{_V2}.TransactionDecisionValueSpec",
            spec,
        )


ORDERS_V3_TYPES: dict[type[Helper], str] = {
    TransactionDecision: f"{_TRANSACTIONS_V3}.TransactionDecisionValueSpec",
    TransactionRequirements: f"{_TRANSACTIONS_V3}.TransactionRequirementsCheckSpec",
}


class NewSurface(SoloHelper):
    def __init__(self, *, capabilities: str | list[str], context: str, notification: str) -> None:
        super().__init__(
            "actions.intent.NEW_SURFACE",
            f"{_V2}.NewSurfaceValueSpec",
            {
                "capabilities": _as_list(capabilities),
                "context": context,
                "notificationTitle": notification,
            },
        )


class RegisterUpdate(SoloHelper):
    def __init__(self, *, intent: str, frequency: str, arguments: list[JsonDict] | None = None) -> None:
        super().__init__(
            "actions.intent.REGISTER_UPDATE",
            f"{_V2}.RegisterUpdateValueSpec",
            {
                "intent": intent,
                "arguments": arguments,
                "triggerContext": {"timeContext": {"frequency": frequency}},
            },
        )


def option_items(items: Mapping[str, Any] | list[JsonDict]) -> list[JsonDict]:
    """Convert ``{key: title | {title, description, image, synonyms}}`` into option items."""

    if isinstance(items, list):
        return items
    converted: list[JsonDict] = []
    for key, value in items.items():
        if isinstance(value, str):
            converted.append({"title": value, "optionInfo": {"key": key}})
            continue
        converted.append(
            {
                "optionInfo": {"key": key, "synonyms": value.get("synonyms")},
                "description": value.get("description"),
                "image": value.get("image"),
                "title": value.get("title"),
            }
        )
    return converted


class List(Helper):
    def __init__(self, items: Mapping[str, Any] | list[JsonDict], *, title: str | None = None) -> None:
        super().__init__(
            "actions.intent.OPTION",
            f"{_V2}.OptionValueSpec",
            {"listSelect": {"title": title, "items": option_items(items)}},
        )


class Carousel(Helper):
    def __init__(self, items: Mapping[str, Any] | list[JsonDict], *, display: str | None = None) -> None:
        super().__init__(
            "actions.intent.OPTION",
            f"{_V2}.OptionValueSpec",
            {"carouselSelect": {"items": option_items(items), "imageDisplayOptions": display}},
        )


class DeepLink(Helper):
    def __init__(self, *, destination: str, url: str, package: str, reason: str | None = None) -> None:
        super().__init__(
            "actions.intent.LINK",
            f"{_V2}.LinkValueSpec",
            {
                "openUrlAction": {"url": url, "androidApp": {"packageName": package}},
                "dialogSpec": {
                    "extension": {
                        "@type": f"{_V2}.LinkValueSpec.LinkDialogSpec",
                        "destinationName": destination,
                        "requestLinkReason": reason,
                    }
                },
            },
        )
