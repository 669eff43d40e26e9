"""
Tests for the authentication endpoints.

Tests cover:
- Student login, session check, and logout through cookies
- Admin login, expiry, and logout
- Failed logins leaving no session or cookie behind
- Cookies of one role being rejected for the other
- Store faults surfacing as a generic 500
"""
from fastapi.testclient import TestClient

from coursechat.main import app
from coursechat.schemas import SessionRole
from coursechat.services.session_store import SessionStore, StoreUnavailableError

from .conftest import COURSE_ID, STUDENT_ID, STUDENT_NAME


def student_login(client, name=STUDENT_NAME, student_id=STUDENT_ID, course_id=COURSE_ID):
    return client.post(
        "/api/auth/login",
        json={"name": name, "studentId": student_id, "courseId": course_id},
    )


def with_cookie(name: str, token: str) -> TestClient:
    """A fresh client presenting exactly one cookie."""
    fresh = TestClient(app)
    fresh.headers["Cookie"] = f"{name}={token}"
    return fresh


class TestStudentLogin:
    """Tests for the student login flow."""

    def test_login_sets_30_day_cookie(self, client, roster):
        response = student_login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"] == {
            "studentId": STUDENT_ID,
            "courseId": COURSE_ID,
            "name": STUDENT_NAME,
        }

        header = response.headers["set-cookie"]
        assert header.startswith("user_session=")
        assert "Max-Age=2592000" in header
        assert "HttpOnly" in header
        assert len(response.cookies["user_session"]) == 64

    def test_session_check_after_login(self, client, roster):
        student_login(client)

        response = client.get("/api/auth/session")

        assert response.status_code == 200
        assert response.json()["authenticated"] is True
        assert response.json()["user"]["studentId"] == STUDENT_ID

    def test_login_strips_whitespace(self, client, roster):
        response = student_login(client, name=f" {STUDENT_NAME} ", student_id=f"{STUDENT_ID} ")
        assert response.status_code == 200

    def test_logout_invalidates_session(self, student_client, db, clock):
        token = student_client.cookies["user_session"]

        response = student_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert "user_session=" in response.headers["set-cookie"]
        assert "Max-Age=0" in response.headers["set-cookie"]
        assert SessionStore(db, clock).get_user_session(token) is None

        # The old token is dead even if a client replays it
        replay = with_cookie("user_session", token)
        assert replay.get("/api/auth/session").json()["authenticated"] is False

    def test_logout_twice_is_fine(self, student_client):
        assert student_client.post("/api/auth/logout").status_code == 200
        assert student_client.post("/api/auth/logout").status_code == 200

    def test_logout_without_cookie(self, client):
        assert client.post("/api/auth/logout").status_code == 200

    def test_session_expires_after_30_days(self, student_client, clock):
        clock.advance(days=30)

        response = student_client.get("/api/auth/session")

        assert response.json() == {"authenticated": False, "user": None, "isAdmin": False}


class TestFailedLogin:
    """Failed logins write nothing and set no cookie."""

    def test_wrong_name(self, client, roster, db):
        response = student_login(client, name="李四")

        assert response.status_code == 401
        assert response.json()["detail"] == "Student ID or name is incorrect"
        assert "set-cookie" not in response.headers
        assert SessionStore(db).count_sessions(SessionRole.USER) == 0

    def test_unknown_course(self, client, roster, db):
        response = student_login(client, course_id="CS999")

        assert response.status_code == 401
        assert response.json()["detail"] == "Course does not exist"
        assert "set-cookie" not in response.headers
        assert SessionStore(db).count_sessions(SessionRole.USER) == 0

    def test_missing_fields(self, client, roster):
        response = client.post("/api/auth/login", json={"name": STUDENT_NAME})
        assert response.status_code == 422

    def test_wrong_admin_password(self, client, admin_secret, db):
        response = client.post("/api/auth/admin/login", json={"password": "guess"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect password"
        assert "set-cookie" not in response.headers
        assert SessionStore(db).count_sessions(SessionRole.ADMIN) == 0


class TestAdminLogin:
    """Tests for the admin login flow."""

    def test_login_sets_12_hour_cookie(self, client, admin_secret):
        response = client.post("/api/auth/admin/login", json={"password": admin_secret})

        assert response.status_code == 200
        header = response.headers["set-cookie"]
        assert header.startswith("admin_session=")
        assert "Max-Age=43200" in header

    def test_admin_session_check(self, admin_client):
        response = admin_client.get("/api/auth/admin/session")

        assert response.json()["authenticated"] is True
        assert response.json()["isAdmin"] is True

    def test_admin_session_expires_and_is_purged(self, admin_client, clock, db):
        assert admin_client.get("/api/admin/users").status_code == 200

        clock.advance(hours=12, seconds=1)

        assert admin_client.get("/api/admin/users").status_code == 401
        assert SessionStore(db).count_sessions(SessionRole.ADMIN) == 0

    def test_admin_logout(self, admin_client):
        response = admin_client.post("/api/auth/admin/logout")

        assert response.status_code == 200
        assert admin_client.get("/api/auth/admin/session").json()["authenticated"] is False
        assert admin_client.get("/api/admin/users").status_code == 401


class TestRoleSeparation:
    """A cookie value only works under the name of its own role."""

    def test_admin_token_in_user_cookie(self, admin_client):
        token = admin_client.cookies["admin_session"]

        impostor = with_cookie("user_session", token)

        assert impostor.get("/api/auth/session").json()["authenticated"] is False
        assert impostor.get("/api/chat-history").status_code == 401

    def test_user_token_in_admin_cookie(self, student_client):
        token = student_client.cookies["user_session"]

        impostor = with_cookie("admin_session", token)

        assert impostor.get("/api/auth/admin/session").json()["authenticated"] is False
        assert impostor.get("/api/admin/users").status_code == 401

    def test_student_session_is_not_admin(self, student_client):
        response = student_client.get("/api/auth/admin/session")
        assert response.json() == {"authenticated": False, "user": None, "isAdmin": False}

    def test_garbage_cookie(self, client):
        impostor = with_cookie("user_session", "not-a-token")
        assert impostor.get("/api/chat-history").status_code == 401


class TestStoreFaults:

    def test_lookup_failure_is_a_generic_500(self, student_client, monkeypatch):
        def broken(*args, **kwargs):
            raise StoreUnavailableError("Session store is unavailable")

        monkeypatch.setattr(SessionStore, "get_session", broken)

        response = student_client.get("/api/chat-history")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

    def test_student_insert_failure_sets_no_cookie(self, client, roster, db, monkeypatch):
        def broken(*args, **kwargs):
            raise StoreUnavailableError("Session store is unavailable")

        monkeypatch.setattr(SessionStore, "_insert", broken)

        response = student_login(client)

        assert response.status_code == 500
        assert "set-cookie" not in response.headers
        assert SessionStore(db).count_sessions(SessionRole.USER) == 0

    def test_admin_insert_failure_sets_no_cookie(self, client, admin_secret, db, monkeypatch):
        def broken(*args, **kwargs):
            raise StoreUnavailableError("Session store is unavailable")

        monkeypatch.setattr(SessionStore, "_insert", broken)

        response = client.post("/api/auth/admin/login", json={"password": admin_secret})

        assert response.status_code == 500
        assert "set-cookie" not in response.headers
        assert SessionStore(db).count_sessions(SessionRole.ADMIN) == 0


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
