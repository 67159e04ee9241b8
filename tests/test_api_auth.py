"""HTTP tests for /auth/local/* and /health using FastAPI's TestClient."""

import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

from manager_api.core.config import Settings, get_settings
from manager_api.core.database import get_engine
from manager_api.main import app


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "JWT_ACCESS_SECRET": "api-access-secret",
        "JWT_REFRESH_SECRET": "api-refresh-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class ApiTestCase(unittest.TestCase):
    """TestClient with settings and engine overridden to a SQLite legacy table."""

    settings_overrides: dict[str, object] = {}

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.engine = create_engine(
            f"sqlite:///{os.path.join(self._tmp.name, 'api.db')}",
            connect_args={"check_same_thread": False},
        )
        with self.engine.begin() as conn:
            conn.execute(text("CREATE TABLE SGDT947 (ID INTEGER, USUARIO VARCHAR(64), PASSWORDD VARCHAR(64))"))
            conn.execute(text("INSERT INTO SGDT947 VALUES (12, 'jdoe', 'secret ')"))
        self.settings = _settings(**self.settings_overrides)
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_engine] = lambda: self.engine
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()
        self._tmp.cleanup()

    def _login(self) -> dict:
        resp = self.client.post("/auth/local/login", json={"username": " JDOE ", "password": "secret"})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()


class TestLogin(ApiTestCase):
    """POST /auth/local/login."""

    def test_success_uses_camel_case(self) -> None:
        body = self._login()
        self.assertEqual(set(body), {"accessToken", "refreshToken", "tokenType", "user"})
        self.assertEqual(body["tokenType"], "Bearer")
        self.assertEqual(body["user"], {"sub": "12", "username": "jdoe", "provider": "local"})

    def test_missing_fields_are_401(self) -> None:
        for payload in [{}, {"username": "jdoe"}, {"password": "secret"}, {"username": "  ", "password": "x"}]:
            with self.subTest(payload=payload):
                resp = self.client.post("/auth/local/login", json=payload)
                self.assertEqual(resp.status_code, 401)
                self.assertEqual(resp.json()["detail"], "Username and password are required")

    def test_null_and_long_fields_are_401(self) -> None:
        cases = [
            ({"username": None, "password": "secret"}, "Username and password are required"),
            ({"username": "jdoe", "password": None}, "Username and password are required"),
            ({"username": "jdoe", "password": "x" * 300}, "Invalid credentials"),
            ({"username": "j" * 300, "password": "secret"}, "Invalid credentials"),
        ]
        for payload, detail in cases:
            with self.subTest(payload=payload):
                resp = self.client.post("/auth/local/login", json=payload)
                self.assertEqual(resp.status_code, 401)
                self.assertEqual(resp.json()["detail"], detail)

    def test_bad_credentials_are_401(self) -> None:
        for payload in [
            {"username": "jdoe", "password": "wrong"},
            {"username": "nobody", "password": "secret"},
        ]:
            with self.subTest(payload=payload):
                resp = self.client.post("/auth/local/login", json=payload)
                self.assertEqual(resp.status_code, 401)
                self.assertEqual(resp.json()["detail"], "Invalid credentials")
                self.assertEqual(resp.headers["www-authenticate"], "Bearer")


class TestLoginMisconfigured(ApiTestCase):
    """Unsafe identifiers surface as 500."""

    settings_overrides = {"ORACLE_AUTH_TABLE": "SGDT947;--"}

    def test_invalid_identifier_is_500(self) -> None:
        resp = self.client.post("/auth/local/login", json={"username": "jdoe", "password": "secret"})
        self.assertEqual(resp.status_code, 500)
        self.assertIn("Invalid SQL identifier", resp.json()["detail"])


class TestStoreDown(ApiTestCase):
    """Store connectivity errors surface as 500."""

    def test_store_error_is_500(self) -> None:
        broken = MagicMock()
        broken.connect.side_effect = OperationalError("connect", {}, Exception("ORA-12541"))
        app.dependency_overrides[get_engine] = lambda: broken
        resp = self.client.post("/auth/local/login", json={"username": "jdoe", "password": "secret"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Credential store is unavailable")


class TestRefreshAndProfile(ApiTestCase):
    """POST /auth/local/refresh and GET /auth/local/profile."""

    def test_refresh(self) -> None:
        tokens = self._login()
        resp = self.client.post("/auth/local/refresh", json={"refreshToken": tokens["refreshToken"]})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(set(body), {"accessToken", "tokenType"})

        profile = self.client.get(
            "/auth/local/profile",
            headers={"Authorization": f"Bearer {body['accessToken']}"},
        )
        self.assertEqual(profile.status_code, 200)
        self.assertEqual(profile.json()["sub"], "12")

    def test_refresh_requires_token(self) -> None:
        resp = self.client.post("/auth/local/refresh", json={})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "refreshToken is required")

    def test_refresh_rejects_access_token(self) -> None:
        tokens = self._login()
        resp = self.client.post("/auth/local/refresh", json={"refreshToken": tokens["accessToken"]})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Invalid refresh token")

    def test_profile_requires_bearer(self) -> None:
        tokens = self._login()
        cases = [
            ({}, "Missing Bearer token"),
            ({"Authorization": f"Basic {tokens['accessToken']}"}, "Missing Bearer token"),
            ({"Authorization": f"Bearer {tokens['refreshToken']}"}, "Invalid access token"),
        ]
        for headers, detail in cases:
            with self.subTest(headers=headers):
                resp = self.client.get("/auth/local/profile", headers=headers)
                self.assertEqual(resp.status_code, 401)
                self.assertEqual(resp.json()["detail"], detail)

    def test_profile_returns_claims(self) -> None:
        tokens = self._login()
        resp = self.client.get(
            "/auth/local/profile",
            headers={"Authorization": f"Bearer {tokens['accessToken']}"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), tokens["user"])


class TestHealth(ApiTestCase):
    """GET /health/ reports store connectivity."""

    def test_connected(self) -> None:
        resp = self.client.get("/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok", "environment": "dev", "database": "connected"})

    def test_not_configured(self) -> None:
        app.dependency_overrides.pop(get_engine)
        get_engine.cache_clear()
        try:
            with patch(
                "manager_api.core.database.get_settings",
                return_value=Settings(_env_file=None),
            ):
                resp = self.client.get("/health/")
        finally:
            get_engine.cache_clear()
        self.assertEqual(resp.json()["database"], "not_configured")


if __name__ == "__main__":
    unittest.main()
