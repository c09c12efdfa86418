from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from registration.api import create_app as create_api_app
from registration.application import create_application
from registration.client import UserAPIClient
from registration.config import Settings
from registration.database import Database
from registration.oracle import BackendValidator, CreatedUsers, RegistrationPage


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "users.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def api_app(database: Database) -> FastAPI:
    return create_api_app(database=database, cors_origins=["*"])


@pytest.fixture()
def api_http(api_app: FastAPI) -> Iterator[TestClient]:
    with TestClient(api_app) as client:
        yield client


@pytest.fixture()
def application(database: Database, api_app: FastAPI) -> FastAPI:
    # The form reaches the API over HTTP; in tests that HTTP hop is a TestClient.
    form_api_client = UserAPIClient("http://testserver", http_client=TestClient(api_app))
    return create_application(
        settings=Settings(database_path=database.path),
        database=database,
        api_client=form_api_client,
    )


@dataclass
class Harness:
    page: RegistrationPage
    backend: BackendValidator
    api: UserAPIClient
    created: CreatedUsers


@pytest.fixture()
def harness(application: FastAPI) -> Iterator[Harness]:
    with TestClient(application) as browser, TestClient(application) as backend_http:
        api = UserAPIClient("http://testserver/api", http_client=backend_http)
        created = CreatedUsers()
        yield Harness(
            page=RegistrationPage(browser),
            backend=BackendValidator(api),
            api=api,
            created=created,
        )
        created.cleanup(api)
