from __future__ import annotations

import datetime as dt
import itertools
from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from app.core.config import Settings
from app.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret=SecretStr("test-secret"),
        bcrypt_rounds=4,
        use_fake_redis=True,
    )


class TickingClock:
    """Advances one second per reading so creation times never tie."""

    def __init__(self) -> None:
        self._ticks = itertools.count(1)
        self._base = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self._base + dt.timedelta(seconds=next(self._ticks))


@pytest.fixture
def application(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(application: FastAPI) -> Iterator[TestClient]:
    with TestClient(application) as c:
        yield c


def register(client: TestClient, name: str, email: str, password: str = "secret1") -> str:
    resp = client.post("/api/users", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client: TestClient) -> dict[str, str]:
    return auth_headers(register(client, "Alice", "alice@example.com"))


@pytest.fixture
def bob(client: TestClient) -> dict[str, str]:
    return auth_headers(register(client, "Bob", "bob@example.com"))
