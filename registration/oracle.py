"""Backend-validation helpers for end-to-end tests.

A scenario drives the registration page, reads back what the page claims was
stored, and then checks that claim against the users API directly. The page is
never used to verify anything.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Dict, List, Optional, Set, Tuple

import httpx

from .client import APIResponse, UserAPIClient

_VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}


class _ElementTextParser(HTMLParser):
    """Collect the text content and classes of every element with an ``id``."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._stack: List[Tuple[str, Optional[str]]] = []
        self.text: Dict[str, str] = {}
        self.classes: Dict[str, Set[str]] = {}
        self.attributes: Dict[str, Dict[str, Optional[str]]] = {}

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        attr_map = dict(attrs)
        element_id = attr_map.get("id")
        if element_id:
            self.text.setdefault(element_id, "")
            self.classes[element_id] = set((attr_map.get("class") or "").split())
            self.attributes[element_id] = attr_map
        if tag not in _VOID_ELEMENTS:
            self._stack.append((tag, element_id))

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        attr_map = dict(attrs)
        element_id = attr_map.get("id")
        if element_id:
            self.text.setdefault(element_id, "")
            self.classes[element_id] = set((attr_map.get("class") or "").split())
            self.attributes[element_id] = attr_map

    def handle_endtag(self, tag: str) -> None:
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index][0] == tag:
                del self._stack[index:]
                return

    def handle_data(self, data: str) -> None:
        for _, element_id in self._stack:
            if element_id:
                self.text[element_id] += data


@dataclass(frozen=True)
class SampleUser:
    """Registration input for a scenario."""

    username: str
    email: str
    age: int


def unique_test_user(age: int = 25) -> SampleUser:
    token = f"{time.time_ns()}{secrets.token_hex(2)}"
    return SampleUser(
        username=f"testuser_{token}",
        email=f"test_{token}@example.com",
        age=age,
    )


@dataclass(frozen=True)
class RenderedUser:
    """The record the registration page says was stored."""

    id: int
    username: str
    email: str
    age: int
    created_at: str


class RenderedPage:
    """Parsed view of the registration page HTML."""

    def __init__(self, status_code: int, html: str) -> None:
        self.status_code = status_code
        self.html = html
        parser = _ElementTextParser()
        parser.feed(html)
        parser.close()
        self._parser = parser

    def text(self, element_id: str) -> Optional[str]:
        value = self._parser.text.get(element_id)
        return value.strip() if value is not None else None

    def is_visible(self, element_id: str) -> bool:
        if element_id not in self._parser.text:
            return False
        return "hidden" not in self._parser.classes.get(element_id, set())

    def has_class(self, element_id: str, css_class: str) -> bool:
        return css_class in self._parser.classes.get(element_id, set())

    def attribute(self, element_id: str, name: str) -> Optional[str]:
        return self._parser.attributes.get(element_id, {}).get(name)

    def has_attribute(self, element_id: str, name: str) -> bool:
        return name in self._parser.attributes.get(element_id, {})

    @property
    def form_visible(self) -> bool:
        return self.is_visible("registrationForm")

    @property
    def error_message(self) -> Optional[str]:
        if self.is_visible("message") and self.has_class("message", "error"):
            return self.text("message")
        return None

    @property
    def rendered_user(self) -> Optional[RenderedUser]:
        if not self.is_visible("userInfo"):
            return None
        raw_id = self.text("userId")
        raw_age = self.text("displayAge")
        if raw_id is None or raw_age is None:
            return None
        return RenderedUser(
            id=int(raw_id),
            username=self.text("displayUsername") or "",
            email=self.text("displayEmail") or "",
            age=int(raw_age),
            created_at=self.text("displayCreatedAt") or "",
        )


class RegistrationPage:
    """Drive the registration form the way a browser would submit it."""

    def __init__(self, http_client: httpx.Client, base_url: str = "") -> None:
        self._client = http_client
        self._base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def open(self) -> RenderedPage:
        response = self._client.get(self._url("/"))
        return RenderedPage(response.status_code, response.text)

    def submit(self, username: str, email: str, age: object) -> RenderedPage:
        response = self._client.post(
            self._url("/"),
            data={"username": username, "email": email, "age": str(age)},
        )
        return RenderedPage(response.status_code, response.text)

    def register_another(self) -> RenderedPage:
        response = self._client.post(self._url("/register-another"))
        return RenderedPage(response.status_code, response.text)


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


class BackendValidator:
    """Check the store's observable state through the users API."""

    def __init__(self, api: UserAPIClient) -> None:
        self._api = api

    def assert_matches(self, claim: RenderedUser) -> Dict[str, object]:
        """Re-query by id and require every rendered field to match."""

        response = self._api.get_user(claim.id)
        _expect(response.status_code == 200, f"GET user {claim.id} returned {response.status_code}")
        _expect(response.success, f"GET user {claim.id} did not report success: {response.payload}")
        stored = response.user or {}
        self._compare(claim, stored)
        return stored

    def assert_found_by_username(self, claim: RenderedUser) -> Dict[str, object]:
        response = self._api.get_user_by_username(claim.username)
        _expect(
            response.status_code == 200,
            f"GET username {claim.username!r} returned {response.status_code}",
        )
        _expect(response.success, f"GET username {claim.username!r} did not report success")
        stored = response.user or {}
        self._compare(claim, stored)
        return stored

    def assert_listed(self, claim: RenderedUser) -> Dict[str, object]:
        response = self._api.list_users()
        _expect(response.status_code == 200, f"GET users returned {response.status_code}")
        _expect(response.success, "GET users did not report success")
        matches = [user for user in response.users if user.get("id") == claim.id]
        _expect(len(matches) == 1, f"User {claim.id} appears {len(matches)} time(s) in the list")
        self._compare(claim, matches[0])
        return matches[0]

    def assert_email_for_username(self, username: str, email: str) -> None:
        response = self._api.get_user_by_username(username)
        _expect(response.status_code == 200, f"GET username {username!r} returned {response.status_code}")
        stored_email = (response.user or {}).get("email")
        _expect(stored_email == email, f"Stored email for {username!r} is {stored_email!r}, expected {email!r}")

    def assert_username_absent(self, username: str) -> APIResponse:
        response = self._api.get_user_by_username(username)
        _expect(
            response.status_code == 404,
            f"Expected no user named {username!r}, API returned {response.status_code}",
        )
        _expect(response.success is False, "Not-found response must report success=false")
        return response

    @staticmethod
    def _compare(claim: RenderedUser, stored: Dict[str, object]) -> None:
        expected = {
            "id": claim.id,
            "username": claim.username,
            "email": claim.email,
            "age": claim.age,
        }
        for key, value in expected.items():
            _expect(
                stored.get(key) == value,
                f"Field {key!r} differs: page shows {value!r}, store has {stored.get(key)!r}",
            )
        if claim.created_at:
            _expect(
                stored.get("created_at") == claim.created_at,
                f"created_at differs: page shows {claim.created_at!r}, store has {stored.get('created_at')!r}",
            )
        else:
            _expect(bool(stored.get("created_at")), "Stored user has no created_at timestamp")


class CreatedUsers:
    """Ids created by the current test; cleanup removes exactly these."""

    def __init__(self) -> None:
        self._ids: List[int] = []

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def track(self, user_id: int) -> int:
        if user_id not in self._ids:
            self._ids.append(user_id)
        return user_id

    def cleanup(self, api: UserAPIClient) -> List[int]:
        removed: List[int] = []
        while self._ids:
            user_id = self._ids.pop()
            response = api.delete_user(user_id)
            _expect(response.status_code == 200, f"Cleanup of user {user_id} returned {response.status_code}")
            removed.append(user_id)
        return removed


__all__ = [
    "BackendValidator",
    "CreatedUsers",
    "RegistrationPage",
    "RenderedPage",
    "RenderedUser",
    "SampleUser",
    "unique_test_user",
]
