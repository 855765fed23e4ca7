import time

import jwt
import pytest

from yearning.auth import Token, jwt_auth, ws_token_is_valid, ws_token_parse

SECRET = "secret"
KEY = SECRET * 6
OTHER_KEY = "token" * 8


def test_round_trip_restores_token():
    token = Token(username="admin", real_name="Admin", is_record=True)
    signed = jwt_auth(token, KEY)
    claims = ws_token_parse(signed, KEY)
    assert Token.from_claims(claims) == token


def test_token_expires_after_eight_hours():
    before = int(time.time())
    claims = ws_token_parse(jwt_auth(Token(username="admin"), KEY), KEY)
    assert 0 <= claims["exp"] - before - 28800 <= 2


def test_valid_token_reported_valid():
    assert ws_token_is_valid(jwt_auth(Token(username="u"), KEY), KEY) is True


def test_wrong_secret_rejected():
    signed = jwt_auth(Token(username="u"), KEY)
    assert ws_token_is_valid(signed, OTHER_KEY) is False
    with pytest.raises(jwt.InvalidSignatureError):
        ws_token_parse(signed, OTHER_KEY)


def test_expired_token_rejected():
    expired = jwt.encode(
        {"name": "u", "real_name": "", "is_record": False, "exp": int(time.time()) - 10},
        KEY.encode(),
        algorithm="HS256",
    )
    assert ws_token_is_valid(expired, KEY) is False
    with pytest.raises(jwt.ExpiredSignatureError):
        ws_token_parse(expired, KEY)


def test_garbage_token_rejected():
    assert ws_token_is_valid("not-a-jwt", KEY) is False


def test_from_claims_requires_fields():
    with pytest.raises(ValueError):
        Token.from_claims({"real_name": "x", "is_record": False})
    with pytest.raises(ValueError):
        Token.from_claims({"name": "x", "real_name": "x", "is_record": "yes"})