"""Display and speech fragments and the merged rich response."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from actionturn.types import JsonDict


class WireModel(BaseModel):
    """Base for value objects rendered with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_wire(self) -> JsonDict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def _url_action(url: str | None) -> JsonDict | None:
    return {"url": url} if url else None


class SimpleResponse(WireModel):
    """Speakable response, optionally with a different display text."""

    text_to_speech: str | None = None
    ssml: str | None = None
    display_text: str | None = None

    def __init__(self, speech: str | None = None, /, *, text: str | None = None, **data: Any) -> None:
        if speech is not None:
            data.setdefault("text_to_speech", speech)
        if text is not None:
            data.setdefault("display_text", text)
        super().__init__(**data)


class Suggestion(WireModel):
    title: str


class Suggestions(WireModel):
    """Suggestion chips; merged across fragments instead of replaced."""

    suggestions: list[Suggestion] = Field(default_factory=list)

    def __init__(self, *titles: str | list[str], **data: Any) -> None:
        super().__init__(**data)
        for title in titles:
            self.add(*([title] if isinstance(title, str) else title))

    def add(self, *titles: str) -> Suggestions:
        self.suggestions.extend(Suggestion(title=title) for title in titles)
        return self


class LinkOutSuggestion(WireModel):
    destination_name: str | None = None
    open_url_action: JsonDict | None = None

    def __init__(self, *, name: str | None = None, url: str | None = None, **data: Any) -> None:
        if name is not None:
            data.setdefault("destination_name", name)
        if url is not None:
            data.setdefault("open_url_action", _url_action(url))
        super().__init__(**data)


class Image(WireModel):
    url: str | None = None
    accessibility_text: str | None = None
    height: int | None = None
    width: int | None = None

    def __init__(self, *, alt: str | None = None, **data: Any) -> None:
        if alt is not None:
            data.setdefault("accessibility_text", alt)
        super().__init__(**data)


class Button(WireModel):
    title: str | None = None
    open_url_action: JsonDict | None = None

    def __init__(self, *, url: str | None = None, **data: Any) -> None:
        if url is not None:
            data.setdefault("open_url_action", _url_action(url))
        super().__init__(**data)


class BasicCard(WireModel):
    title: str | None = None
    subtitle: str | None = None
    formatted_text: str | None = None
    image: Image | None = None
    buttons: list[Button] | None = None
    image_display_options: str | None = None

    def __init__(
        self,
        *,
        text: str | None = None,
        display: str | None = None,
        buttons: Button | list[Button] | None = None,
        **data: Any,
    ) -> None:
        if text is not None:
            data.setdefault("formatted_text", text)
        if display is not None:
            data.setdefault("image_display_options", display)
        if buttons is not None:
            data["buttons"] = buttons if isinstance(buttons, list) else [buttons]
        super().__init__(**data)


def _column_properties(columns: list[Any]) -> list[JsonDict]:
    properties: list[JsonDict] = []
    for column in columns:
        if isinstance(column, str):
            properties.append({"header": column})
            continue
        alignment = column.get("horizontalAlignment") or column.get("align")
        prop: JsonDict = {"header": column.get("header")}
        if alignment:
            prop["horizontalAlignment"] = alignment
        properties.append(prop)
    return properties


class Table(WireModel):
    """Table card; rows may be given as lists of strings."""

    title: str | None = None
    subtitle: str | None = None
    image: Image | None = None
    column_properties: list[JsonDict] | None = None
    rows: list[JsonDict] = Field(default_factory=list)
    buttons: list[Button] | None = None

    def __init__(
        self,
        *,
        rows: list[Any] | None = None,
        columns: list[Any] | int | None = None,
        dividers: bool | None = None,
        buttons: Button | list[Button] | None = None,
        **data: Any,
    ) -> None:
        converted: list[JsonDict] = []
        for row in rows or []:
            if isinstance(row, list):
                cells = [{"text": text} for text in row]
                divider = dividers
            else:
                cells = [{"text": cell} if isinstance(cell, str) else cell for cell in row.get("cells", [])]
                divider = row.get("dividerAfter", dividers)
            converted_row: JsonDict = {"cells": cells}
            if divider is not None:
                converted_row["dividerAfter"] = divider
            converted.append(converted_row)
        data["rows"] = converted
        if columns is not None and "column_properties" not in data:
            if isinstance(columns, int):
                data["column_properties"] = [{} for _ in range(columns)]
            else:
                data["column_properties"] = _column_properties(columns)
        if buttons is not None:
            data["buttons"] = buttons if isinstance(buttons, list) else [buttons]
        super().__init__(**data)


class BrowseCarouselItem(WireModel):
    title: str | None = None
    open_url_action: JsonDict | None = None
    description: str | None = None
    footer: str | None = None
    image: Image | None = None

    def __init__(self, *, url: str | None = None, **data: Any) -> None:
        if url is not None:
            data.setdefault("open_url_action", _url_action(url))
        super().__init__(**data)


class BrowseCarousel(WireModel):
    items: list[BrowseCarouselItem] = Field(default_factory=list)
    image_display_options: str | None = None

    def __init__(self, *items: BrowseCarouselItem, display: str | None = None, **data: Any) -> None:
        if items:
            data.setdefault("items", list(items))
        if display is not None:
            data.setdefault("image_display_options", display)
        super().__init__(**data)


class MediaObject(WireModel):
    content_url: str | None = None
    name: str | None = None
    description: str | None = None
    icon: Image | None = None
    large_image: Image | None = None

    def __init__(self, url: str | None = None, /, *, image: Image | None = None, **data: Any) -> None:
        if url is not None:
            data.setdefault("content_url", url)
        if image is not None:
            data.setdefault("large_image", image)
        super().__init__(**data)


class MediaResponse(WireModel):
    media_type: str = "AUDIO"
    media_objects: list[MediaObject] = Field(default_factory=list)

    def __init__(self, *objects: MediaObject | str, **data: Any) -> None:
        if objects:
            data.setdefault(
                "media_objects",
                [MediaObject(item) if isinstance(item, str) else item for item in objects],
            )
        super().__init__(**data)


class OrderUpdate(WireModel):
    """Order update passed through as given."""


class HtmlResponse(WireModel):
    url: str | None = None
    updated_state: Any = None
    suppress_mic: bool | None = None

    def __init__(self, *, data: Any = None, suppress: bool | None = None, **fields: Any) -> None:
        if data is not None:
            fields.setdefault("updated_state", data)
        if suppress is not None:
            fields.setdefault("suppress_mic", suppress)
        super().__init__(**fields)


class RichItem(WireModel):
    """One display slot of a rich response; exactly one field is set."""

    simple_response: SimpleResponse | None = None
    basic_card: BasicCard | None = None
    table_card: Table | None = None
    carousel_browse: BrowseCarousel | None = None
    media_response: MediaResponse | None = None
    structured_response: dict[str, OrderUpdate] | None = None
    html_response: HtmlResponse | None = None


class RichResponse(WireModel):
    """Ordered speech/display items plus suggestions and an external link."""

    items: list[RichItem] = Field(default_factory=list)
    suggestions: list[Suggestion] | None = None
    link_out_suggestion: LinkOutSuggestion | None = None

    def __init__(
        self,
        *items: Any,
        suggestions: Suggestions | list[str] | str | None = None,
        link: LinkOutSuggestion | None = None,
        **data: Any,
    ) -> None:
        super().__init__(**data)
        self.add(*items)
        if link is not None:
            self.link_out_suggestion = link
        if suggestions is not None:
            if isinstance(suggestions, list):
                self.add_suggestion(*suggestions)
            else:
                self.add_suggestion(suggestions)

    def add(self, *items: Any) -> RichResponse:
        for item in items:
            match item:
                case str():
                    self.items.append(RichItem(simple_response=SimpleResponse(item)))
                case LinkOutSuggestion():
                    self.link_out_suggestion = item
                case SimpleResponse():
                    self.items.append(RichItem(simple_response=item))
                case BasicCard():
                    self.items.append(RichItem(basic_card=item))
                case Table():
                    self.items.append(RichItem(table_card=item))
                case BrowseCarousel():
                    self.items.append(RichItem(carousel_browse=item))
                case MediaResponse():
                    self.items.append(RichItem(media_response=item))
                case OrderUpdate():
                    self.items.append(RichItem(structured_response={"orderUpdate": item}))
                case HtmlResponse():
                    self.items.append(RichItem(html_response=item))
                case RichItem():
                    self.items.append(item)
                case _:
                    self.items.append(RichItem.model_validate(item))
        return self

    def add_suggestion(self, *suggestions: Suggestions | str) -> RichResponse:
        if self.suggestions is None:
            self.suggestions = []
        for suggestion in suggestions:
            chips = Suggestions(suggestion) if isinstance(suggestion, str) else suggestion
            self.suggestions.extend(chips.suggestions)
        return self

    def has_simple_response(self) -> bool:
        return any(item.simple_response is not None for item in self.items)

    def first_simple_response(self) -> SimpleResponse | None:
        for item in self.items:
            if item.simple_response is not None:
                return item.simple_response
        return None
