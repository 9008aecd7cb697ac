from unittest.mock import patch

import pytest
from fastapi import HTTPException

from services.auth import _bearer, require_user, verify_token
from services.errors import AuthError


def test_bearer_parsing():
    assert _bearer("Bearer abc ") == "abc"
    assert _bearer("Basic abc") == ""
    assert _bearer(None) == ""


def test_empty_token_rejected_without_lookup():
    with patch("services.auth.id_token.verify_firebase_token") as verify:
        with pytest.raises(AuthError):
            verify_token("")
    verify.assert_not_called()


def test_invalid_token():
    with patch("services.auth.id_token.verify_firebase_token", side_effect=ValueError("expired")):
        with pytest.raises(AuthError):
            verify_token("tok")


def test_token_without_subject():
    with patch("services.auth.id_token.verify_firebase_token", return_value={"aud": "p"}):
        with pytest.raises(AuthError):
            verify_token("tok")


def test_require_user_returns_uid():
    with patch("services.auth.id_token.verify_firebase_token", return_value={"user_id": "uid-7"}):
        assert require_user("Bearer tok") == "uid-7"


def test_require_user_401():
    with pytest.raises(HTTPException) as info:
        require_user(None)
    assert info.value.status_code == 401
