"""Issuing and checking session tokens."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import jwt

_LIFETIME_SECONDS = 8 * 60 * 60
_ALGORITHMS = ["HS256", "HS384", "HS512"]


@dataclass
class Token:
    """Identity carried by a session token."""

    username: str = ""
    real_name: str = ""
    is_record: bool = False

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Token:
        """Read the identity from decoded token claims."""
        name = claims.get("name")
        real_name = claims.get("real_name")
        is_record = claims.get("is_record")
        if not isinstance(name, str) or not isinstance(real_name, str):
            raise ValueError("token claims lack a name")
        if not isinstance(is_record, bool):
            raise ValueError("token claims lack the recorder flag")
        return cls(username=name, real_name=real_name, is_record=is_record)


def jwt_auth(token: Token, secret: str) -> str:
    """Sign an HS256 token valid for eight hours."""
    claims = {
        "name": token.username,
        "real_name": token.real_name,
        "is_record": token.is_record,
        "exp": int(time.time()) + _LIFETIME_SECONDS,
    }
    try:
        return jwt.encode(claims, secret.encode(), algorithm="HS256")
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise ValueError("JWT Generate Failure") from exc


def ws_token_parse(token: str, secret: str) -> dict[str, Any]:
    """Verify a token and return its claims; raises ``jwt.InvalidTokenError``."""
    return jwt.decode(token, secret.encode(), algorithms=_ALGORITHMS)


def ws_token_is_valid(token: str, secret: str) -> bool:
    """Whether the token verifies and has not expired."""
    try:
        ws_token_parse(token, secret)
    except jwt.InvalidTokenError:
        return False
    return True