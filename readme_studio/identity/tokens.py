"""Signed bearer tokens and the verifier that turns them into identities."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from readme_studio.errors import AuthError
from readme_studio.identity.keys import load_public_key

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """Authenticated caller."""

    uid: str
    email: str | None = None


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode((text + padding).encode("ascii"))


def issue_token(
    private_key: Ed25519PrivateKey,
    *,
    uid: str,
    email: str | None = None,
    expires_in_hours: float = 1.0,
    now: datetime | None = None,
) -> str:
    """Mint a signed token for a user id."""
    if not uid.strip():
        raise ValueError("uid must be non-empty.")
    if expires_in_hours <= 0:
        raise ValueError("expires_in_hours must be greater than zero.")
    issued_at = now or datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "uid": uid.strip(),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(hours=expires_in_hours)).timestamp()),
    }
    if email:
        payload["email"] = email
    body = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    signature = private_key.sign(body)
    return f"{_b64encode(body)}.{_b64encode(signature)}"


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer`` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Missing or invalid Authorization header", code="MISSING_AUTH")
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise AuthError("Missing or invalid Authorization header", code="MISSING_AUTH")
    return token


class TokenVerifier:
    """Verifies signed tokens against a public key."""

    def __init__(self, public_key: Ed25519PublicKey | None) -> None:
        self._public_key = public_key

    @classmethod
    def from_home(cls, home_dir: Path | None = None) -> TokenVerifier:
        """Build a verifier from the key pair stored in the data directory."""
        return cls(load_public_key(home_dir))

    def authenticate(self, token: str | None, *, now: datetime | None = None) -> Identity:
        """Return the identity carried by a valid token.

        Raises:
            AuthError: when the token is missing, malformed, badly signed, or expired.
        """
        if not token:
            raise AuthError("Missing authentication token", code="MISSING_AUTH")
        if self._public_key is None:
            logger.warning("Token verification attempted without a verification key.")
            raise AuthError("Invalid or expired authentication token")
        payload = self._verified_payload(token)
        expires_at = payload.get("exp")
        if not isinstance(expires_at, int):
            raise AuthError("Invalid or expired authentication token")
        current = now or datetime.now(tz=UTC)
        if current.timestamp() >= expires_at:
            raise AuthError("Invalid or expired authentication token")
        uid = payload.get("uid")
        if not isinstance(uid, str) or not uid:
            raise AuthError("Invalid or expired authentication token")
        email = payload.get("email")
        return Identity(uid=uid, email=email if isinstance(email, str) else None)

    def _verified_payload(self, token: str) -> dict[str, Any]:
        body_part, _, signature_part = token.partition(".")
        if not body_part or not signature_part:
            raise AuthError("Invalid or expired authentication token")
        try:
            body = _b64decode(body_part)
            signature = _b64decode(signature_part)
        except (binascii.Error, ValueError) as exc:
            raise AuthError("Invalid or expired authentication token") from exc
        try:
            self._public_key.verify(signature, body)  # type: ignore[union-attr]
        except InvalidSignature as exc:
            raise AuthError("Invalid or expired authentication token") from exc
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise AuthError("Invalid or expired authentication token") from exc
        if not isinstance(payload, dict):
            raise AuthError("Invalid or expired authentication token")
        return payload
