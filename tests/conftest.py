import os

import pytest
from fastapi.testclient import TestClient

# main builds a module-level app from the environment at import time.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from config import Settings  # noqa: E402
from core.errors import DownstreamError  # noqa: E402
from core.media import UploadedAsset, check_inline_image  # noqa: E402
from database import Database  # noqa: E402
from main import create_app  # noqa: E402


class FakeMedia:
    """In-memory stand-in for the Cloudinary-backed MediaManager."""

    def __init__(self):
        self.assets = {}
        self.uploaded = []
        self.deleted = []
        self.fail_upload = False
        self._counter = 0

    def upload(self, image_data):
        check_inline_image(image_data)
        if self.fail_upload:
            raise DownstreamError("Upload failed")
        self._counter += 1
        asset_id = f"library/cover{self._counter}"
        url = f"https://res.cloudinary.com/demo/image/upload/v1/{asset_id}.png"
        self.assets[asset_id] = url
        self.uploaded.append(asset_id)
        return UploadedAsset(url=url, asset_id=asset_id)

    def delete(self, asset_id):
        self.deleted.append(asset_id)
        return self.assets.pop(asset_id, None) is not None


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'library_test.db'}",
        jwt_secret_key="test-secret",
    )


@pytest.fixture
def database(settings):
    db = Database(settings.database_url)
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def app(settings, media):
    return create_app(settings, media=media)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


IMAGE = "data:image/png;base64,iVBORw0KGgo="


def signup(client, username="alice", email="alice@example.com", password="secret123"):
    return client.post(
        "/api/signup",
        json={"username": username, "email": email, "password": password},
    )


def add_book(client, title="Dune", **overrides):
    payload = {
        "image": IMAGE,
        "title": title,
        "subtitle": "A novel",
        "author": "Frank Herbert",
        "link": "https://example.com/dune",
        "review": "Spice.",
    }
    payload.update(overrides)
    return client.post("/api/add-book", json=payload)
