from __future__ import annotations

import pytest

from fakes import FakeDB, make_container

from src.fleet_admin.fleet_admin import create_app


@pytest.fixture
def db():
    return FakeDB()


@pytest.fixture
def container(db):
    return make_container(db)


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    with client.session_transaction() as sess:
        sess["admin"] = {"id": 1, "username": "admin", "role": "admin"}
    return client
