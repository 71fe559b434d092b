import pytest
import requests

import remote_clients
from errors import AdapterError, AuthError, TransientNetworkError
from remote_clients import AuthClient, StorageClient


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.text = "" if body is None else str(body)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.fixture
def auth():
    return AuthClient("https://hosted.example/", "anon-key", timeout=3)


def test_sign_in(auth, monkeypatch):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(method=method, url=url, **kwargs)
        return FakeResponse(200, {"access_token": "tok", "user": {"id": "u-1", "email": "a@b.cl"}})

    monkeypatch.setattr(remote_clients.requests, "request", fake_request)

    session = auth.sign_in_with_password("a@b.cl", "password123")

    assert session["access_token"] == "tok"
    assert seen["url"] == "https://hosted.example/auth/v1/token"
    assert seen["params"] == {"grant_type": "password"}
    assert seen["headers"]["apikey"] == "anon-key"
    assert seen["timeout"] == 3


def test_sign_in_rejected(auth, monkeypatch):
    monkeypatch.setattr(
        remote_clients.requests,
        "request",
        lambda *a, **k: FakeResponse(400, {"error_description": "Invalid login credentials"}),
    )

    with pytest.raises(AuthError, match="Invalid login credentials"):
        auth.sign_in_with_password("a@b.cl", "wrong-pass")


def test_connection_error_is_transient(auth, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(remote_clients.requests, "request", boom)

    with pytest.raises(TransientNetworkError):
        auth.sign_in_with_password("a@b.cl", "password123")


def test_get_user_expired_token(auth, monkeypatch):
    monkeypatch.setattr(remote_clients.requests, "request", lambda *a, **k: FakeResponse(401, {"msg": "expired"}))

    assert auth.get_user("tok") is None


def test_get_user_maps_metadata(auth, monkeypatch):
    body = {"id": "u-1", "email": "a@b.cl", "user_metadata": {"name": "Ana", "avatar_url": "https://x/a.png"}}
    monkeypatch.setattr(remote_clients.requests, "request", lambda *a, **k: FakeResponse(200, body))

    user = auth.get_user("tok")

    assert user.name == "Ana"
    assert user.avatar_url == "https://x/a.png"


def test_sign_out_tolerates_expired_session(auth, monkeypatch):
    monkeypatch.setattr(remote_clients.requests, "request", lambda *a, **k: FakeResponse(401))

    auth.sign_out("tok")


def test_storage_upload_and_public_url(monkeypatch):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(method=method, url=url, **kwargs)
        return FakeResponse(200, {"Key": "report-photos/photos/x.jpg"})

    monkeypatch.setattr(remote_clients.requests, "request", fake_request)
    storage = StorageClient("https://hosted.example", "anon-key", "report-photos")

    storage.upload("photos/x.jpg", b"data", "image/jpeg", token="tok")

    assert seen["method"] == "POST"
    assert seen["url"] == "https://hosted.example/storage/v1/object/report-photos/photos/x.jpg"
    assert seen["headers"]["Authorization"] == "Bearer tok"
    assert seen["headers"]["Content-Type"] == "image/jpeg"
    assert seen["data"] == b"data"
    assert storage.public_url("photos/x.jpg") == (
        "https://hosted.example/storage/v1/object/public/report-photos/photos/x.jpg"
    )


def test_storage_upload_failure(monkeypatch):
    monkeypatch.setattr(remote_clients.requests, "request", lambda *a, **k: FakeResponse(413, {"message": "too big"}))
    storage = StorageClient("https://hosted.example", "anon-key", "report-photos")

    with pytest.raises(AdapterError, match="too big"):
        storage.upload("photos/x.jpg", b"data", "image/jpeg")
