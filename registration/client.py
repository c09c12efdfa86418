"""HTTP client for the users API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx


class APIUnavailableError(Exception):
    """Raised when the users API cannot be reached or returns garbage."""


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("API base URL must not be empty")
    return cleaned.rstrip("/")


def _build_endpoint(base_url: str, path: str) -> str:
    if not path.startswith("/"):
        path = "/" + path
    return f"{base_url}{path}"


@dataclass(frozen=True)
class APIResponse:
    """Status code and decoded JSON body of a users API call."""

    status_code: int
    payload: Dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.payload.get("success"))

    @property
    def message(self) -> Optional[str]:
        value = self.payload.get("message")
        return value if isinstance(value, str) else None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        value = self.payload.get("user")
        return value if isinstance(value, dict) else None

    @property
    def users(self) -> List[Dict[str, Any]]:
        value = self.payload.get("users")
        return value if isinstance(value, list) else []


class UserAPIClient:
    """Call the users API over HTTP.

    ``http_client`` may be any :class:`httpx.Client`, including FastAPI's
    ``TestClient``; when omitted a client is created and owned by this object.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = _normalize_base_url(base_url)
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.Client(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "UserAPIClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def list_users(self) -> APIResponse:
        return self._request("GET", "/users")

    def get_user(self, user_id: int) -> APIResponse:
        return self._request("GET", f"/users/{user_id}")

    def get_user_by_username(self, username: str) -> APIResponse:
        return self._request("GET", f"/users/username/{quote(username, safe='')}")

    def create_user(self, username: str, email: str, age: object) -> APIResponse:
        return self._request(
            "POST",
            "/users",
            json={"username": username, "email": email, "age": age},
        )

    def delete_user(self, user_id: int) -> APIResponse:
        return self._request("DELETE", f"/users/{user_id}")

    def delete_all_users(self) -> APIResponse:
        return self._request("DELETE", "/users")

    def _request(self, method: str, path: str, *, json: object = None) -> APIResponse:
        url = _build_endpoint(self._base_url, path)
        try:
            response = self._client.request(method, url, json=json)
        except httpx.RequestError as exc:
            raise APIUnavailableError(f"Failed to contact users API: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise APIUnavailableError(
                f"Users API returned an invalid response (status {response.status_code})"
            ) from exc

        if not isinstance(payload, dict):
            raise APIUnavailableError("Users API returned an unexpected response payload")

        return APIResponse(status_code=response.status_code, payload=payload)


__all__ = ["APIResponse", "APIUnavailableError", "UserAPIClient"]
