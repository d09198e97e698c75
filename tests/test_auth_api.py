import pytest

from conftest import signup
from config import Settings
from database import Database
from main import create_app, init_database


def test_signup_sets_cookie_and_hides_password(client):
    response = signup(client)

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "alice"
    assert user["email"] == "alice@example.com"
    assert "password" not in user

    cookie = response.headers["set-cookie"].lower()
    assert cookie.startswith("token=")
    assert "httponly" in cookie
    assert "samesite=strict" in cookie
    assert "max-age=604800" in cookie
    assert "; secure" not in cookie


def test_signup_user_is_retrievable(client):
    user_id = signup(client).json()["user"]["id"]

    response = client.get("/api/fetch-user")

    assert response.status_code == 200
    assert response.json()["user"]["id"] == user_id
    assert "password" not in response.json()["user"]


@pytest.mark.parametrize("missing", ["username", "email", "password"])
def test_signup_missing_field(client, missing):
    payload = {"username": "alice", "email": "alice@example.com", "password": "pw"}
    payload[missing] = ""

    response = client.post("/api/signup", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "All fields are required."


def test_signup_duplicates_fail_without_creating(client, app):
    signup(client)

    dup_email = signup(client, username="bob")
    dup_name = signup(client, email="bob@example.com")

    assert dup_email.status_code == 400
    assert dup_email.json()["message"] == "User already exists"
    assert dup_name.status_code == 400
    assert dup_name.json()["message"] == "Username is taken, try another name."
    assert app.state.users.find_by_email("bob@example.com") is None


def test_login_success_issues_matching_token(client, app):
    user_id = signup(client).json()["user"]["id"]
    client.cookies.clear()

    response = client.post(
        "/api/login", json={"email": "alice@example.com", "password": "secret123"}
    )

    assert response.status_code == 200
    assert response.json()["user"] == {
        "id": user_id,
        "username": "alice",
        "email": "alice@example.com",
    }
    assert app.state.sessions.verify(client.cookies["token"]) == user_id


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "alice@example.com", "password": "wrong"},
        {"email": "nobody@example.com", "password": "secret123"},
        {"email": "alice@example.com"},
    ],
)
def test_login_bad_credentials(client, payload):
    signup(client)
    client.cookies.clear()

    response = client.post("/api/login", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid credentials."
    assert "token" not in client.cookies


def test_fetch_user_requires_token(client):
    response = client.get("/api/fetch-user")

    assert response.status_code == 401
    assert response.json()["message"] == "No token provided."


def test_fetch_user_rejects_invalid_token(client):
    client.cookies.set("token", "not-a-token")

    response = client.get("/api/fetch-user")

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token."


def test_fetch_user_unknown_user(client, app):
    client.cookies.set("token", app.state.sessions.issue("0" * 32))

    response = client.get("/api/fetch-user")

    assert response.status_code == 400
    assert response.json()["message"] == "User not found."


def test_logout_clears_cookie(client):
    signup(client)

    response = client.post("/api/logout")

    assert response.status_code == 200
    assert "token" not in client.cookies
    assert client.get("/api/fetch-user").status_code == 401


def test_malformed_body_is_400(client):
    response = client.post(
        "/api/signup", content="{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert "message" in response.json()


def test_oversized_body_is_rejected(client, settings):
    settings.max_body_size = 64
    body = "x" * 65

    response = client.post(
        "/api/signup", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Request body too large."


def test_streamed_body_over_limit_is_rejected(client, settings, app):
    settings.max_body_size = 64
    chunks = iter([b'{"username": "alice", ', b'"email": "alice@example.com", ', b'"password": "x"}'])

    response = client.post(
        "/api/signup", content=chunks, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert "message" in response.json()
    assert app.state.users.find_by_email("alice@example.com") is None


def test_missing_secret_key_fails_startup(monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)

    with pytest.raises(RuntimeError):
        Settings.from_env()
    with pytest.raises(RuntimeError):
        create_app(Settings(jwt_secret_key=None))


def test_unreachable_database_exits(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    database = Database(f"sqlite:///{blocker / 'library.db'}")

    with pytest.raises(SystemExit) as exc:
        init_database(database)
    assert exc.value.code == 1
