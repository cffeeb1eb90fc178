import uuid
from datetime import timedelta

from biketrails.core.security import (
    create_access_token,
    decode_access_token,
    generate_activation_token,
    get_password_hash,
    pwd_context,
    xsrf_tokens_match,
)
from biketrails.models.user import User


def test_password_hash_is_accepted_by_user():
    password_hash = get_password_hash("pedal-power-42")
    assert password_hash.startswith("$argon2i$")
    assert len(password_hash) == 97

    user = User(uuid.uuid4(), "rider", "rider@trails.org", password_hash)
    assert user.user_hash == password_hash


def test_password_hash_matches_only_its_password():
    password_hash = get_password_hash("pedal-power-42")
    assert pwd_context.verify("pedal-power-42", password_hash)
    assert not pwd_context.verify("wrong-password", password_hash)
    # Fresh salt per hash
    assert get_password_hash("pedal-power-42") != password_hash


def test_activation_token_fits_user():
    token = generate_activation_token()
    assert len(token) == 32
    assert token == token.lower()
    user = User(uuid.uuid4(), "rider", "rider@trails.org", get_password_hash("pedal-power-42"), token)
    assert user.user_activation_token == token


def test_xsrf_tokens_match():
    assert xsrf_tokens_match("abc", "abc")
    assert not xsrf_tokens_match("abc", "abd")
    assert not xsrf_tokens_match("abc", None)
    assert not xsrf_tokens_match(None, None)
    assert not xsrf_tokens_match("", "")


def test_access_token_round_trip():
    user_id = str(uuid.uuid4())
    payload = decode_access_token(create_access_token({"sub": user_id}))
    assert payload["sub"] == user_id
    assert "exp" in payload


def test_expired_or_tampered_token_is_rejected():
    expired = create_access_token({"sub": "rider"}, expires_delta=timedelta(minutes=-1))
    assert decode_access_token(expired) is None

    token = create_access_token({"sub": "rider"})
    assert decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB")) is None
    assert decode_access_token("not-a-token") is None
