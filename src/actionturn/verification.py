"""Inbound request verification."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from loguru import logger

from actionturn.conversation import TokenVerifier
from actionturn.errors import ConfigurationError, VerificationError
from actionturn.types import Headers, JsonDict

ErrorTransform: TypeAlias = str | Callable[[str], Any] | None


async def google_id_token_verifier(token: str, audience: str) -> JsonDict:
    """Verify a Google-signed ID token for ``audience`` and return its claims."""

    request = google_requests.Request()
    return await asyncio.to_thread(id_token.verify_oauth2_token, token, request, audience)


def error_body(message: str, error: ErrorTransform) -> JsonDict:
    if isinstance(error, str):
        return {"error": error}
    if error is None:
        return {"error": message}
    return {"error": error(message)}


@dataclass(frozen=True)
class HeaderVerification:
    """Require every configured header to be present with the configured value."""

    headers: dict[str, str]
    status: int = 403
    error: ErrorTransform = None

    @classmethod
    def coerce(cls, value: Any, *, status: int = 403) -> HeaderVerification:
        if isinstance(value, HeaderVerification):
            return value
        if isinstance(value, Mapping) and isinstance(value.get("headers"), Mapping):
            return cls(
                headers=dict(value["headers"]),
                status=value.get("status", status),
                error=value.get("error"),
            )
        if isinstance(value, Mapping):
            return cls(headers=dict(value), status=status)
        raise ConfigurationError(f"unsupported header verification: {value!r}")

    async def check(self, headers: Headers) -> None:
        for key, expected in self.headers.items():
            received = headers.get(key.lower())
            if not received:
                raise VerificationError("A verification header key was not found")
            values = received if isinstance(received, list) else [received]
            if expected not in values:
                raise VerificationError("A verification header value was invalid")


@dataclass(frozen=True)
class ProjectVerification:
    """Require the ``authorization`` header to be an ID token for ``project``."""

    project: str
    status: int = 403
    error: ErrorTransform = None
    verifier: TokenVerifier = field(default=google_id_token_verifier, compare=False)

    @classmethod
    def coerce(
        cls,
        value: Any,
        *,
        status: int = 403,
        verifier: TokenVerifier | None = None,
    ) -> ProjectVerification:
        if isinstance(value, ProjectVerification):
            return value
        verifier = verifier or google_id_token_verifier
        if isinstance(value, str):
            return cls(project=value, status=status, verifier=verifier)
        if isinstance(value, Mapping) and value.get("project"):
            return cls(
                project=value["project"],
                status=value.get("status", status),
                error=value.get("error"),
                verifier=verifier,
            )
        raise ConfigurationError(f"unsupported project verification: {value!r}")

    async def check(self, headers: Headers) -> None:
        token = headers.get("authorization") or ""
        try:
            await self.verifier(token, self.project)
        except (ValueError, GoogleAuthError) as exc:
            logger.debug("verification.id_token_failed project={} error={}", self.project, exc)
            raise VerificationError(f"ID token verification failed: {exc}") from exc
