import pytest
from fastapi.testclient import TestClient

from aiteken.config import Settings
from aiteken.database import build_engine
from aiteken.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'aiteken.db'}",
        jwt_secret="test-secret",
        jwt_algorithm="HS256",
        environment="development",
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.sqlalchemy_url, settings)
    yield engine
    engine.dispose()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register(client):
    def _register(username="alice", email="alice@example.com", password="s3cret-pass"):
        return client.post(
            "/register",
            json={"username": username, "email": email, "password": password},
        )

    return _register
