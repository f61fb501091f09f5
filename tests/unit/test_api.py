"""API tests for report, admin and notification endpoints"""

import smtplib
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from whistle_service.core.email_alerts import EmailAlerter
from whistle_service.crypto import encrypt
from whistle_service.main import create_app
from whistle_service.models import ReportPayload


MIB = 1024 * 1024
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct horse battery staple"


def _video(size_bytes=10 * MIB, duration=30, fmt="video/mp4"):
    return {"duration": duration, "size": size_bytes, "format": fmt, "isRecorded": True}


@pytest.mark.unit
class TestSubmitReport:
    """POST /api/reports"""

    def test_plain_report_accepted(self, client):
        """Happy path: plain report returns id, acknowledgement and created_at only"""
        response = client.post(
            "/api/reports",
            json={"message": "Broken glass on stairwell B", "category": "safety", "severity": "low"}
        )

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"id", "message", "created_at"}
        assert body["id"].startswith("report_")
        assert body["message"] == "Report submitted successfully"

    def test_unknown_category_rejected(self, client, store):
        """Unknown category is a 400 with an error body and nothing is stored"""
        response = client.post("/api/reports", json={"message": "hello", "category": "bogus"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid category"}
        assert len(store) == 0

    def test_missing_message_rejected(self, client):
        response = client.post("/api/reports", json={"message": "   ", "category": "safety"})

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    def test_invalid_severity_rejected(self, client):
        response = client.post(
            "/api/reports",
            json={"message": "hi", "category": "safety", "severity": "critical"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid severity level"}

    def test_oversized_video_rejected(self, client):
        """Video just over 100 MiB is refused"""
        response = client.post(
            "/api/reports",
            json={"message": "see video", "category": "safety", "video_metadata": _video(100 * MIB + 1)}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Video file too large. Maximum size is 100MB"}

    def test_malformed_body_is_400(self, client):
        """Schema errors use the same error shape"""
        response = client.post(
            "/api/reports",
            json={"message": "x", "category": "safety", "video_metadata": {"format": "video/mp4"}}
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_encrypted_report_stored_without_plaintext(self, client, store, key, admin_headers):
        """Encrypted envelope is stored verbatim and listed with no plaintext"""
        envelope = encrypt(ReportPayload(message="secret", category="harassment"), key)

        response = client.post(
            "/api/reports",
            json={"is_encrypted": True, "encrypted_data": envelope.model_dump(), "severity": "high"}
        )
        assert response.status_code == 201

        listing = client.get("/api/reports", headers=admin_headers).json()
        assert listing["total"] == 1
        stored = listing["reports"][0]
        assert stored["is_encrypted"] is True
        assert stored["message"] is None
        assert stored["category"] is None
        assert stored["encrypted_data"]["encrypted_message"] == envelope.encrypted_message
        assert stored["encrypted_data"]["iv"] == envelope.iv

    def test_encrypted_flag_without_envelope_rejected(self, client):
        response = client.post("/api/reports", json={"is_encrypted": True, "message": "hi"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid encrypted data"}

    def test_camel_case_envelope_accepted(self, client, key):
        """Envelope field names may arrive in camelCase"""
        envelope = encrypt(ReportPayload(message="secret", category="medical"), key)

        response = client.post(
            "/api/reports",
            json={
                "is_encrypted": True,
                "encrypted_data": {
                    "encryptedMessage": envelope.encrypted_message,
                    "encryptedCategory": envelope.encrypted_category,
                    "iv": envelope.iv,
                    "timestamp": envelope.timestamp,
                },
            }
        )

        assert response.status_code == 201


@pytest.mark.unit
class TestReportStatus:
    """GET /api/reports/{id}/status"""

    def test_status_omits_content(self, client):
        """Status view carries workflow fields only"""
        report_id = client.post(
            "/api/reports",
            json={"message": "private details", "category": "medical", "photo_url": "https://x/p.jpg"}
        ).json()["id"]

        response = client.get(f"/api/reports/{report_id}/status")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"id", "status", "created_at", "admin_response", "admin_response_at"}
        assert body["status"] == "pending"

    def test_encrypted_status_omits_envelope(self, client, key):
        envelope = encrypt(ReportPayload(message="secret", category="safety"), key)
        report_id = client.post(
            "/api/reports",
            json={"is_encrypted": True, "encrypted_data": envelope.model_dump()}
        ).json()["id"]

        body = client.get(f"/api/reports/{report_id}/status").json()

        assert "encrypted_data" not in body
        assert "message" not in body

    def test_urgent_report_is_flagged(self, client):
        report_id = client.post(
            "/api/reports",
            json={"message": "fire", "category": "emergency", "severity": "urgent"}
        ).json()["id"]

        assert client.get(f"/api/reports/{report_id}/status").json()["status"] == "flagged"

    def test_unknown_report_is_404(self, client):
        response = client.get("/api/reports/report_missing/status")

        assert response.status_code == 404
        assert response.json() == {"error": "Report not found"}


@pytest.mark.unit
class TestAdminEndpoints:
    """Login, listing and updates"""

    def test_login_success_sets_cookie(self, client):
        response = client.post(
            "/api/admin/login",
            json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["token"]
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("auth=")
        assert "HttpOnly" in set_cookie
        assert "samesite=strict" in set_cookie.lower()

    def test_login_failure_is_generic(self, client):
        """Wrong password answers 401 without saying which field was wrong"""
        response = client.post(
            "/api/admin/login",
            json={"username": ADMIN_USERNAME, "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid username or password"}
        assert "set-cookie" not in response.headers

    def test_list_requires_auth(self, client):
        response = client.get("/api/reports")

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_list_rejects_bad_token(self, client):
        response = client.get("/api/reports", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_cookie_authenticates(self, client):
        """The auth cookie alone is enough for admin endpoints"""
        client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})

        response = client.get("/api/reports")

        assert response.status_code == 200

    def test_list_filters_by_status(self, client, admin_headers):
        client.post("/api/reports", json={"message": "a", "category": "safety"})
        client.post("/api/reports", json={"message": "b", "category": "safety", "severity": "urgent"})

        response = client.get("/api/reports", params={"status": "flagged"}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["reports"][0]["message"] == "b"

    def test_update_report_visible_on_status(self, client, admin_headers):
        """Admin response is stamped and shown on the anonymous status page"""
        report_id = client.post("/api/reports", json={"message": "a", "category": "feedback"}).json()["id"]

        response = client.put(
            f"/api/reports/{report_id}",
            json={"status": "resolved", "admin_response": "Thanks, fixed."},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "resolved"

        status = client.get(f"/api/reports/{report_id}/status").json()
        assert status["status"] == "resolved"
        assert status["admin_response"] == "Thanks, fixed."
        assert status["admin_response_at"] is not None

    def test_update_unknown_report_is_404(self, client, admin_headers):
        response = client.put("/api/reports/report_missing", json={"status": "reviewed"}, headers=admin_headers)

        assert response.status_code == 404

    def test_update_requires_auth(self, client):
        response = client.put("/api/reports/report_missing", json={"status": "reviewed"})

        assert response.status_code == 401


@pytest.mark.unit
class TestNotificationEndpoints:
    """Stream authentication, settings and manual email alerts"""

    def test_stream_without_token_is_401(self, client):
        response = client.get("/api/notifications/stream")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_stream_with_bad_token_is_401(self, client):
        response = client.get("/api/notifications/stream", params={"token": "garbage"})

        assert response.status_code == 401

    def test_settings_requires_admin(self, client):
        assert client.get("/api/notifications/settings").status_code == 401

    def test_settings_reports_channels(self, client, admin_headers):
        response = client.get("/api/notifications/settings", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["email_enabled"] is False
        assert body["active_viewers"] == 0
        assert "emergency" in body["categories"]

    def test_email_unconfigured_is_503(self, client, admin_headers):
        response = client.post(
            "/api/notifications/email",
            json={"report_id": "report_missing"},
            headers=admin_headers
        )

        assert response.status_code == 503
        assert response.json() == {"error": "Email service not configured"}

    def test_test_email_requires_admin(self, client):
        assert client.post("/api/notifications/test-email").status_code == 401

    def test_test_email_unconfigured_is_503(self, client, admin_headers):
        response = client.post("/api/notifications/test-email", headers=admin_headers)

        assert response.status_code == 503
        assert response.json() == {"error": "Email service not configured"}


@pytest.fixture
def email_client(settings, store):
    configured = settings.model_copy(update={"email_enabled": True, "email_to": "safety@example.org"})
    with TestClient(create_app(settings=configured, store=store)) as test_client:
        yield test_client


@pytest.fixture
def email_admin_headers(email_client):
    response = email_client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    email_client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.mark.unit
class TestEmailCheckEndpoint:
    """SMTP check with email alerts configured"""

    def test_sends_test_email(self, email_client, email_admin_headers):
        """Happy path: relay accepts the check email"""
        with patch.object(EmailAlerter, "_send") as send:
            response = email_client.post("/api/notifications/test-email", headers=email_admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Test email sent"}
        send.assert_called_once()

    def test_relay_failure_is_502(self, email_client, email_admin_headers):
        with patch.object(EmailAlerter, "_send", side_effect=smtplib.SMTPException("relay down")):
            response = email_client.post("/api/notifications/test-email", headers=email_admin_headers)

        assert response.status_code == 502
        assert response.json() == {"error": "Failed to send test email"}
