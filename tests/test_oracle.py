from __future__ import annotations

import httpx
import pytest

from registration.client import UserAPIClient
from registration.oracle import (
    BackendValidator,
    CreatedUsers,
    RenderedPage,
    RenderedUser,
    unique_test_user,
)

SUCCESS_HTML = """
<div id="message" class="message hidden"></div>
<form id="registrationForm" class="hidden"><input id="username" value="x"></form>
<section id="userInfo" class="user-info">
  <dd id="userId"> 9 </dd>
  <dd id="displayUsername">alice</dd>
  <dd id="displayEmail">alice@example.com</dd>
  <dd id="displayAge">30</dd>
  <dd id="displayCreatedAt">2026-10-18T10:00:00Z</dd>
</section>
"""

ERROR_HTML = """
<div id="message" class="message error">Username &amp; email already exists</div>
<form id="registrationForm"><input id="username" value="alice"></form>
<section id="userInfo" class="user-info hidden"></section>
"""


def test_rendered_page_parses_success_claim() -> None:
    page = RenderedPage(200, SUCCESS_HTML)

    assert not page.form_visible
    assert page.error_message is None
    assert page.rendered_user == RenderedUser(
        id=9,
        username="alice",
        email="alice@example.com",
        age=30,
        created_at="2026-10-18T10:00:00Z",
    )


def test_rendered_page_parses_error() -> None:
    page = RenderedPage(200, ERROR_HTML)

    assert page.form_visible
    assert page.error_message == "Username & email already exists"
    assert page.rendered_user is None
    assert page.attribute("username", "value") == "alice"


def test_unique_test_user_is_unique() -> None:
    first = unique_test_user()
    second = unique_test_user()

    assert first.username != second.username
    assert first.email.endswith("@example.com")
    assert first.username.startswith("testuser_")
    assert first.age == 25


def _api_returning(status_code: int, payload: dict) -> UserAPIClient:
    transport = httpx.MockTransport(lambda request: httpx.Response(status_code, json=payload))
    return UserAPIClient("http://service.local/api", http_client=httpx.Client(transport=transport))


def test_validator_reports_field_mismatch() -> None:
    claim = RenderedUser(id=1, username="alice", email="alice@example.com", age=30, created_at="t")
    api = _api_returning(
        200,
        {"success": True, "user": {"id": 1, "username": "alice", "email": "other@example.com", "age": 30, "created_at": "t"}},
    )

    with pytest.raises(AssertionError, match="email"):
        BackendValidator(api).assert_matches(claim)


def test_validator_absent_requires_404() -> None:
    api = _api_returning(200, {"success": True, "user": {"id": 1}})

    with pytest.raises(AssertionError):
        BackendValidator(api).assert_username_absent("alice")


def test_created_users_deletes_only_tracked_ids() -> None:
    deleted = []

    def handler(request: httpx.Request) -> httpx.Response:
        deleted.append((request.method, request.url.path))
        return httpx.Response(200, json={"success": True, "message": "User deleted successfully"})

    api = UserAPIClient("http://service.local/api", http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    created = CreatedUsers()
    created.track(4)
    created.track(8)
    created.track(4)

    assert len(created) == 2
    assert 8 in created
    assert sorted(created.cleanup(api)) == [4, 8]
    assert sorted(deleted) == [("DELETE", "/api/users/4"), ("DELETE", "/api/users/8")]
    assert len(created) == 0
