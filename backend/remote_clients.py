"""
HTTP clients for the hosted backend's auth and object storage APIs.

Both are thin, blocking wrappers around `requests`; the remote adapter
runs them in a worker thread (`asyncio.to_thread`) so the event loop is
never blocked. Every call sends the public API key in the `apikey`
header, which is what the hosted service expects from browser-grade
clients.

Endpoints used:
- POST /auth/v1/token?grant_type=password  (password sign-in)
- POST /auth/v1/logout                      (sign-out)
- GET  /auth/v1/user                        (session retrieval)
- POST /storage/v1/object/<bucket>/<path>   (upload)
- public objects resolve under /storage/v1/object/public/<bucket>/<path>
"""

from typing import Any, Dict, Optional

import requests

from errors import AdapterError, AuthError, TransientNetworkError
from models import User


def auth_user_to_user(data: Dict[str, Any]) -> User:
    meta = data.get("user_metadata") or {}
    return User(
        id=str(data["id"]),
        email=data["email"],
        name=meta.get("name"),
        avatar_url=meta.get("avatar_url"),
    )


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code}"


class _HostedClient:
    def __init__(self, base_url: str, anon_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
        }

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return requests.request(
                method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientNetworkError(f"Backend unreachable: {exc}") from exc


class AuthClient(_HostedClient):
    """Password auth against the hosted auth service."""

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        resp = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        if resp.status_code in (400, 401, 403):
            raise AuthError(_error_message(resp))
        if not resp.ok:
            raise AdapterError(_error_message(resp))

        session = resp.json()
        if not session.get("user"):
            raise AuthError("No user returned")
        return session

    def sign_out(self, access_token: str) -> None:
        resp = self._request("POST", "/auth/v1/logout", headers=self._headers(access_token))
        # an already expired token means the session is gone anyway
        if resp.status_code in (401, 403, 404):
            return
        if not resp.ok:
            raise AdapterError(_error_message(resp))

    def get_user(self, access_token: str) -> Optional[User]:
        resp = self._request("GET", "/auth/v1/user", headers=self._headers(access_token))
        if resp.status_code in (401, 403):
            return None
        if not resp.ok:
            raise AdapterError(_error_message(resp))
        return auth_user_to_user(resp.json())


class StorageClient(_HostedClient):
    """Uploads into one public bucket."""

    def __init__(self, base_url: str, anon_key: str, bucket: str, timeout: float = 10.0):
        super().__init__(base_url, anon_key, timeout)
        self.bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str, token: Optional[str] = None) -> None:
        headers = self._headers(token)
        headers["Content-Type"] = content_type
        headers["x-upsert"] = "false"
        resp = self._request(
            "POST", f"/storage/v1/object/{self.bucket}/{path}", headers=headers, data=data
        )
        if not resp.ok:
            raise AdapterError(f"Photo upload failed: {_error_message(resp)}")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"
