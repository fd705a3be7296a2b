"""Tests for admin user management under /auth/users."""
from fips_reporting.models.audit_log import AuditLog


def _new_user(**overrides):
    data = {
        "email": "New.Reporter@Example.com",
        "full_name": "New Reporter",
        "password": "newpass123",
        "role": "Reporting User"
    }
    data.update(overrides)
    return data


class TestCreateUser:
    """Test POST /auth/users."""

    def test_admin_creates_user(self, client, db_session, admin_user, admin_headers):
        response = client.post("/auth/users", headers=admin_headers, json=_new_user())
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.reporter@example.com"
        assert data["role"] == "Reporting User"
        assert data["is_active"] is True
        assert data["capabilities"]["can_report"] is True

        audit = db_session.query(AuditLog).filter(
            AuditLog.entity_type == "User",
            AuditLog.action == "CREATE"
        ).first()
        assert audit is not None
        assert audit.entity_id == data["user_id"]
        assert "password" not in audit.changes

    def test_created_user_can_log_in(self, client, admin_user, admin_headers):
        client.post("/auth/users", headers=admin_headers, json=_new_user())
        response = client.post(
            "/auth/login",
            json={"email": "new.reporter@example.com", "password": "newpass123"}
        )
        assert response.status_code == 200

    def test_role_is_case_insensitive(self, client, admin_user, admin_headers):
        response = client.post(
            "/auth/users", headers=admin_headers, json=_new_user(role="central operations")
        )
        assert response.status_code == 201
        assert response.json()["role"] == "Central Operations"

    def test_duplicate_email_rejected(self, client, test_user, admin_user, admin_headers):
        response = client.post(
            "/auth/users", headers=admin_headers, json=_new_user(email="REPORTER@example.com")
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_unknown_role_rejected(self, client, admin_user, admin_headers):
        response = client.post("/auth/users", headers=admin_headers, json=_new_user(role="Superuser"))
        assert response.status_code == 422

    def test_short_password_rejected(self, client, admin_user, admin_headers):
        response = client.post("/auth/users", headers=admin_headers, json=_new_user(password="short"))
        assert response.status_code == 422

    def test_reporting_user_cannot_create(self, client, test_user, auth_headers):
        response = client.post("/auth/users", headers=auth_headers, json=_new_user())
        assert response.status_code == 403

    def test_central_operations_cannot_create(self, client, central_ops_user, central_ops_headers):
        response = client.post("/auth/users", headers=central_ops_headers, json=_new_user())
        assert response.status_code == 403


class TestListUsers:
    """Test GET /auth/users."""

    def test_admin_lists_users_by_email(self, client, test_user, second_user, admin_user, admin_headers):
        response = client.get("/auth/users", headers=admin_headers)
        assert response.status_code == 200
        emails = [u["email"] for u in response.json()]
        assert emails == sorted(emails)
        assert "reporter@example.com" in emails
        assert "other@example.com" in emails

    def test_get_user_by_id(self, client, test_user, admin_user, admin_headers):
        response = client.get(f"/auth/users/{test_user.user_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    def test_get_missing_user(self, client, admin_user, admin_headers):
        response = client.get("/auth/users/9999", headers=admin_headers)
        assert response.status_code == 404

    def test_reporting_user_cannot_list(self, client, test_user, auth_headers):
        response = client.get("/auth/users", headers=auth_headers)
        assert response.status_code == 403


class TestUpdateUser:
    """Test PATCH /auth/users/{user_id}."""

    def test_change_role(self, client, db_session, test_user, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{test_user.user_id}",
            headers=admin_headers,
            json={"role": "Central Operations"}
        )
        assert response.status_code == 200
        assert response.json()["role"] == "Central Operations"
        assert response.json()["capabilities"]["can_view_all_products"] is True

        audit = db_session.query(AuditLog).filter(
            AuditLog.entity_type == "User",
            AuditLog.action == "UPDATE"
        ).first()
        assert audit.changes["role"] == {"old": "Reporting User", "new": "Central Operations"}

    def test_deactivated_user_cannot_log_in(self, client, test_user, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{test_user.user_id}",
            headers=admin_headers,
            json={"is_active": False}
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        login = client.post(
            "/auth/login",
            json={"email": "reporter@example.com", "password": "testpass123"}
        )
        assert login.status_code == 401

    def test_password_change(self, client, db_session, test_user, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{test_user.user_id}",
            headers=admin_headers,
            json={"password": "rotated-pass-1"}
        )
        assert response.status_code == 200

        old_login = client.post(
            "/auth/login",
            json={"email": "reporter@example.com", "password": "testpass123"}
        )
        assert old_login.status_code == 401
        new_login = client.post(
            "/auth/login",
            json={"email": "reporter@example.com", "password": "rotated-pass-1"}
        )
        assert new_login.status_code == 200

        audit = db_session.query(AuditLog).filter(
            AuditLog.entity_type == "User",
            AuditLog.action == "UPDATE"
        ).first()
        assert audit.changes == {"password": "changed"}

    def test_email_taken_by_another_user(self, client, test_user, second_user, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{test_user.user_id}",
            headers=admin_headers,
            json={"email": "Other@Example.com"}
        )
        assert response.status_code == 400

    def test_admin_cannot_deactivate_self(self, client, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{admin_user.user_id}",
            headers=admin_headers,
            json={"is_active": False}
        )
        assert response.status_code == 400

    def test_admin_cannot_drop_own_admin_role(self, client, db_session, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{admin_user.user_id}",
            headers=admin_headers,
            json={"role": "Reporting User"}
        )
        assert response.status_code == 400
        db_session.refresh(admin_user)
        assert admin_user.role == "Admin"

    def test_admin_can_rename_self(self, client, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{admin_user.user_id}",
            headers=admin_headers,
            json={"full_name": "Renamed Admin"}
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "Renamed Admin"

    def test_no_changes_writes_no_audit(self, client, db_session, test_user, admin_user, admin_headers):
        response = client.patch(
            f"/auth/users/{test_user.user_id}",
            headers=admin_headers,
            json={"full_name": test_user.full_name}
        )
        assert response.status_code == 200
        assert db_session.query(AuditLog).filter(AuditLog.entity_type == "User").count() == 0

    def test_reporting_user_cannot_update(self, client, db_session, test_user, second_user, auth_headers):
        response = client.patch(
            f"/auth/users/{second_user.user_id}",
            headers=auth_headers,
            json={"is_active": False}
        )
        assert response.status_code == 403
        db_session.refresh(second_user)
        assert second_user.is_active is True
