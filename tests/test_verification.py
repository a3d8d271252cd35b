from __future__ import annotations

import pytest
from google.auth.exceptions import GoogleAuthError

from actionturn import verification
from actionturn.errors import ConfigurationError, VerificationError
from actionturn.verification import HeaderVerification, ProjectVerification, error_body


def test_error_body_variants() -> None:
    assert error_body("bad", None) == {"error": "bad"}
    assert error_body("bad", "fixed") == {"error": "fixed"}
    assert error_body("bad", lambda message: message.upper()) == {"error": "BAD"}


def test_header_verification_coerce() -> None:
    plain = HeaderVerification.coerce({"key": "value"}, status=418)
    full = HeaderVerification.coerce({"headers": {"key": "value"}, "status": 400})

    assert plain == HeaderVerification(headers={"key": "value"}, status=418)
    assert full.status == 400
    with pytest.raises(ConfigurationError):
        HeaderVerification.coerce(["key"])


def test_project_verification_coerce() -> None:
    assert ProjectVerification.coerce("proj").project == "proj"
    assert ProjectVerification.coerce({"project": "proj", "status": 400}).status == 400
    with pytest.raises(ConfigurationError):
        ProjectVerification.coerce({"status": 400})


@pytest.mark.asyncio
async def test_header_check_is_case_insensitive_on_configured_name() -> None:
    check = HeaderVerification(headers={"X-Key": "v"})

    await check.check({"x-key": "v"})
    with pytest.raises(VerificationError, match="key was not found"):
        await check.check({})


@pytest.mark.asyncio
async def test_google_verifier_runs_in_thread(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, str]] = []

    def fake_verify(token, request, audience):
        calls.append((token, audience))
        return {"aud": audience, "email": "ada@example.com"}

    monkeypatch.setattr(verification.id_token, "verify_oauth2_token", fake_verify)

    claims = await verification.google_id_token_verifier("jwt", "proj")

    assert claims == {"aud": "proj", "email": "ada@example.com"}
    assert calls == [("jwt", "proj")]


@pytest.mark.asyncio
async def test_project_check_wraps_google_auth_errors() -> None:
    async def failing(token: str, audience: str) -> dict[str, str]:
        raise GoogleAuthError("certificate fetch failed")

    check = ProjectVerification(project="proj", verifier=failing)

    with pytest.raises(VerificationError, match="ID token verification failed: certificate fetch failed"):
        await check.check({"authorization": "jwt"})
