"""Framework-neutral data aliases."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

JsonDict: TypeAlias = dict[str, Any]
Headers: TypeAlias = dict[str, Any]
Metadata: TypeAlias = dict[str, Any]
Handler: TypeAlias = Callable[..., Any]
ErrorHandler: TypeAlias = Callable[..., Any]
Middleware: TypeAlias = Callable[..., Any]
StandardHandler: TypeAlias = Callable[[JsonDict, Headers, Metadata], Awaitable["WebhookResponse"]]

JSON_CONTENT_TYPE = "application/json;charset=utf-8"


@dataclass
class WebhookResponse:
    """Result of one complete webhook turn."""

    status: int
    body: JsonDict = field(default_factory=dict)
    headers: Headers = field(default_factory=dict)
