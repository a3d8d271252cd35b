"""Fulfillment messages authored in the Dialogflow console, as fragments."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from actionturn.helpers import Carousel, List
from actionturn.response import BasicCard, Button, Image, LinkOutSuggestion, SimpleResponse, Suggestions
from actionturn.types import JsonDict

_V2_PLATFORMS = {"ACTIONS_ON_GOOGLE", "PLATFORM_UNSPECIFIED"}


def _image(url: str | None, alt: str | None = None) -> Image | None:
    if not url:
        return None
    return Image(url=url, alt=alt or "")


def _link_buttons(buttons: list[JsonDict] | None, title_key: str, url_of: Any) -> list[Button] | None:
    if not buttons:
        return None
    return [Button(title=button.get(title_key), url=url_of(button)) for button in buttons]


class Incoming:
    """Parsed console responses; may be re-sent by the handler as fragments."""

    def __init__(self, fulfillment: list[JsonDict] | Mapping[str, Any] | None = None) -> None:
        self.parsed: list[Any] = []
        if fulfillment is None:
            return
        if isinstance(fulfillment, list):
            self._parse_v2(fulfillment)
        else:
            self._parse_v1(fulfillment)

    def get(self, kind: type | None = None) -> Any:
        """Return the first parsed fragment of ``kind`` (``str`` for plain text)."""

        for message in self.parsed:
            if kind is None or isinstance(message, kind):
                return message
        return None

    def __iter__(self) -> Iterator[Any]:
        return iter(self.parsed)

    def _parse_v2(self, messages: list[JsonDict]) -> None:
        for message in messages:
            platform = message.get("platform")
            if platform and platform not in _V2_PLATFORMS:
                continue
            if "text" in message:
                self.parsed.extend(message["text"].get("text") or [])
            elif "image" in message:
                image = message["image"]
                self.parsed.append(Image(url=image.get("imageUri"), alt=image.get("accessibilityText")))
            elif "quickReplies" in message:
                self.parsed.append(Suggestions(message["quickReplies"].get("quickReplies") or []))
            elif "card" in message:
                card = message["card"]
                self.parsed.append(
                    BasicCard(
                        title=card.get("title"),
                        subtitle=card.get("subtitle"),
                        image=_image(card.get("imageUri")),
                        buttons=_link_buttons(card.get("buttons"), "text", lambda b: b.get("postback")),
                    )
                )
            elif "simpleResponses" in message:
                for simple in message["simpleResponses"].get("simpleResponses") or []:
                    self.parsed.append(
                        SimpleResponse(
                            simple.get("textToSpeech") or simple.get("ssml"),
                            text=simple.get("displayText"),
                        )
                    )
            elif "basicCard" in message:
                card = message["basicCard"]
                image = card.get("image")
                self.parsed.append(
                    BasicCard(
                        title=card.get("title"),
                        subtitle=card.get("subtitle"),
                        text=card.get("formattedText"),
                        image=_image(image.get("imageUri"), image.get("accessibilityText")) if image else None,
                        buttons=_link_buttons(
                            card.get("buttons"),
                            "title",
                            lambda b: (b.get("openUriAction") or {}).get("uri"),
                        ),
                    )
                )
            elif "suggestions" in message:
                chips = message["suggestions"].get("suggestions") or []
                self.parsed.append(Suggestions([chip.get("title") for chip in chips]))
            elif "linkOutSuggestion" in message:
                link = message["linkOutSuggestion"]
                self.parsed.append(LinkOutSuggestion(name=link.get("destinationName"), url=link.get("uri")))
            elif "listSelect" in message:
                select = message["listSelect"]
                self.parsed.append(List(select.get("items") or [], title=select.get("title")))
            elif "carouselSelect" in message:
                self.parsed.append(Carousel(message["carouselSelect"].get("items") or []))
            elif "payload" in message:
                self.parsed.append(message["payload"])

    def _parse_v1(self, fulfillment: Mapping[str, Any]) -> None:
        speech = fulfillment.get("speech")
        if speech:
            self.parsed.append(speech)
        for message in fulfillment.get("messages") or []:
            platform = message.get("platform")
            if platform and platform != "google":
                continue
            match message.get("type"):
                case 0:
                    self.parsed.append(message.get("speech"))
                case 3:
                    image = _image(message.get("imageUrl"))
                    if image is not None:
                        self.parsed.append(image)
                case 1:
                    self.parsed.append(
                        BasicCard(
                            title=message.get("title"),
                            subtitle=message.get("subtitle"),
                            image=_image(message.get("imageUrl")),
                            buttons=_link_buttons(message.get("buttons"), "text", lambda b: b.get("postback")),
                        )
                    )
                case 2:
                    self.parsed.append(Suggestions(message.get("replies") or []))
                case 4:
                    self.parsed.append(message.get("payload"))
                case "simple_response":
                    self.parsed.append(SimpleResponse(message.get("textToSpeech"), text=message.get("displayText")))
                case "basic_card":
                    image = message.get("image") or {}
                    self.parsed.append(
                        BasicCard(
                            title=message.get("title"),
                            subtitle=message.get("subtitle"),
                            text=message.get("formattedText"),
                            image=_image(image.get("url")),
                            buttons=_link_buttons(
                                message.get("buttons"),
                                "title",
                                lambda b: (b.get("openUrlAction") or {}).get("url"),
                            ),
                        )
                    )
                case "list_card":
                    self.parsed.append(List(message.get("items") or [], title=message.get("title")))
                case "suggestion_chips":
                    chips = message.get("suggestions") or []
                    self.parsed.append(Suggestions([chip.get("title") for chip in chips]))
                case "carousel_card":
                    self.parsed.append(Carousel(message.get("items") or []))
                case "link_out_chip":
                    self.parsed.append(LinkOutSuggestion(name=message.get("destinationName"), url=message.get("url")))
                case "custom_payload":
                    self.parsed.append(message.get("payload"))
