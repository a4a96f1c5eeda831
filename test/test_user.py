import pytest
from conftest import auth_headers

from filegate.common.db import db
from filegate.common.errors import ErrorKind
from filegate.services.user_service import Identity, UserService, extract_bearer_token


@pytest.mark.parametrize("header, token", [
    ("Bearer abc123", "abc123"),
    ("bearer abc123", "abc123"),
    ("BEARER abc123", "abc123"),
    ("Bearer", None),
    ("Token abc123", None),
    ("Bearer abc 123", None),
    ("", None),
    (None, None),
])
def test_extract_bearer_token(header, token):
    assert extract_bearer_token(header) == token


def test_resolve_identity(seed):
    identity, err = UserService.resolve(db.session, f"Bearer {seed.alice.api_token}")
    assert err is None
    assert identity == Identity(id=seed.alice.id, name="alice", is_admin=False)


def test_resolve_admin(seed):
    identity, _ = UserService.resolve(db.session, f"Bearer {seed.admin.api_token}")
    assert identity.is_admin


def test_resolve_without_token(seed):
    identity, err = UserService.resolve(db.session, None)
    assert identity is None
    assert err.kind is ErrorKind.UNAUTHENTICATED


def test_resolve_unknown_token(seed):
    identity, err = UserService.resolve(db.session, "Bearer deadbeef")
    assert identity is None
    assert err.kind is ErrorKind.INVALID_CREDENTIAL


def test_tokens_are_unique(seed):
    tokens = {u.api_token for u in (seed.admin, seed.alice, seed.bob, seed.mallory)}
    assert len(tokens) == 4
    assert all(len(t) == 64 for t in tokens)


# ------------------------------
# /me 与 token 轮换
# ------------------------------
def test_profile(client, seed):
    res = client.get("/me", headers=auth_headers(seed.alice))
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data == {"id": seed.alice.id, "name": "alice", "isAdmin": False}
    assert "token" not in data


def test_profile_without_token(client, seed):
    res = client.get("/me")
    assert res.status_code == 401
    assert res.get_json()["code"] == "UNAUTHENTICATED"


def test_profile_malformed_header(client, seed):
    res = client.get("/me", headers={"Authorization": f"Token {seed.alice.api_token}"})
    assert res.status_code == 401


def test_profile_unknown_token(client, seed):
    res = client.get("/me", headers={"Authorization": "Bearer deadbeef"})
    assert res.status_code == 403
    assert res.get_json()["code"] == "INVALID_CREDENTIAL"


def test_regenerate_token(client, seed):
    old_headers = auth_headers(seed.alice)
    res = client.post("/me/token", headers=old_headers)
    assert res.status_code == 200
    new_token = res.get_json()["data"]["token"]
    assert new_token != old_headers["Authorization"].split()[1]

    assert client.get("/me", headers=old_headers).status_code == 403
    res = client.get("/me", headers={"Authorization": f"Bearer {new_token}"})
    assert res.status_code == 200
    assert res.get_json()["data"]["name"] == "alice"
