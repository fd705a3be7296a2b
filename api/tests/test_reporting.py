"""Tests for the monthly reporting endpoints."""
from fips_reporting.models.performance_metric import PerformanceMetricData
from fips_reporting.models.reporting import ReportSubmission

BASE = "/reporting/2025/august"


def _save(client, headers, product_id, metric_id, value=None, is_null_return=False):
    return client.post(
        f"{BASE}/products/{product_id}/metrics/{metric_id}",
        json={"value": value, "is_null_return": is_null_return},
        headers=headers
    )


def _complete_product(client, headers, metrics, product_id):
    assert _save(client, headers, product_id, metrics["users"].metric_id, "42").status_code == 200
    assert _save(client, headers, product_id, metrics["availability"].metric_id, "99.9").status_code == 200
    assert _save(client, headers, product_id, metrics["hosting"].metric_id, "Cloud").status_code == 200


class TestPeriods:

    def test_list_periods(self, client, auth_headers):
        response = client.get("/reporting/periods", headers=auth_headers)
        assert response.status_code == 200
        periods = response.json()
        assert len(periods) == 3
        assert all(p["due_date_status"] in ("Overdue", "Due soon", "Upcoming") for p in periods)

    def test_unknown_month(self, client, auth_headers):
        response = client.get("/reporting/2025/smarch", headers=auth_headers)
        assert response.status_code == 404


class TestMonthOverview:

    def test_not_started(self, client, auth_headers, metrics, allocations):
        response = client.get(BASE, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["period"]["key"] == "2025-august"
        assert data["period"]["due_date"] == "2025-09-07"
        assert data["completed_products"] == 0
        assert data["total_products"] == 2
        assert data["is_submitted"] is False
        assert data["submission_status"] == "Cannot submit"
        assert data["state"] == "NOT_STARTED"
        assert {p["performance_status"] for p in data["products"]} == {"Not started"}

    def test_in_progress(self, client, auth_headers, metrics, allocations):
        _save(client, auth_headers, "FIPS-0001", metrics["users"].metric_id, "5")
        data = client.get(BASE, headers=auth_headers).json()
        assert data["state"] == "IN_PROGRESS"
        payments = next(p for p in data["products"] if p["product_id"] == "FIPS-0001")
        assert payments["completed_metrics"] == 1
        assert payments["total_metrics"] == 3
        assert payments["performance_status"] == "In progress"

    def test_no_allocations(self, client, second_user_headers, metrics):
        data = client.get(BASE, headers=second_user_headers).json()
        assert data["total_products"] == 0
        assert data["submission_status"] == "Cannot submit"


class TestProductPerformance:

    def test_allocated_product(self, client, auth_headers, metrics, allocations):
        _save(client, auth_headers, "FIPS-0001", metrics["hosting"].metric_id, "Hybrid")
        response = client.get(f"{BASE}/products/FIPS-0001", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["product_name"] == "Claim Additional Payments"
        assert [m["unique_id"] for m in data["metrics"]] == ["PM-002", "PM-003", "PM-001"]
        hosting = next(m for m in data["metrics"] if m["unique_id"] == "PM-003")
        assert hosting["value"] == "Hybrid"
        assert hosting["is_complete"] is True
        assert data["performance_status"] == "In progress"
        assert data["submission_status"] == "Cannot submit"

    def test_not_allocated_forbidden(self, client, second_user_headers, metrics, allocations):
        response = client.get(f"{BASE}/products/FIPS-0001", headers=second_user_headers)
        assert response.status_code == 403

    def test_central_operations_can_view(self, client, central_ops_headers, metrics, allocations):
        response = client.get(f"{BASE}/products/FIPS-0001", headers=central_ops_headers)
        assert response.status_code == 200

    def test_central_operations_cannot_save(self, client, central_ops_headers, metrics, allocations):
        response = _save(client, central_ops_headers, "FIPS-0001", metrics["users"].metric_id, "5")
        assert response.status_code == 403

    def test_admin_unknown_product(self, client, admin_headers, metrics, allocations):
        response = client.get(f"{BASE}/products/FIPS-9999", headers=admin_headers)
        assert response.status_code == 404

    def test_admin_sees_owner_submission(self, client, auth_headers, admin_headers, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")
        _complete_product(client, auth_headers, metrics, "FIPS-0002")
        assert client.post(f"{BASE}/submit", headers=auth_headers).status_code == 200

        data = client.get(f"{BASE}/products/FIPS-0001", headers=admin_headers).json()
        assert data["submission_status"] == "Submitted"

    def test_central_operations_sees_owner_status(self, client, auth_headers, central_ops_headers, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")

        data = client.get(f"{BASE}/products/FIPS-0001", headers=central_ops_headers).json()
        assert data["performance_status"] == "Complete"
        assert data["submission_status"] == "Ready to submit"


class TestCentralOperationsReadOnly:
    """Central operations users cannot write, even to products allocated to them."""

    def test_can_view_own_product(self, client, central_ops_headers, metrics, central_ops_allocation):
        response = client.get(f"{BASE}/products/FIPS-0003", headers=central_ops_headers)
        assert response.status_code == 200
        assert response.json()["product_name"] == "Get Help With Tech"

    def test_cannot_save_to_own_product(self, client, central_ops_headers, db_session, metrics, central_ops_allocation):
        response = _save(client, central_ops_headers, "FIPS-0003", metrics["users"].metric_id, "5")
        assert response.status_code == 403
        assert db_session.query(PerformanceMetricData).count() == 0

    def test_cannot_submit_own_product(self, client, central_ops_headers, metrics, central_ops_allocation):
        response = client.post(f"{BASE}/products/FIPS-0003/submit", headers=central_ops_headers)
        assert response.status_code == 403

    def test_cannot_submit_return(self, client, central_ops_headers, db_session, metrics, central_ops_allocation):
        response = client.post(f"{BASE}/submit", headers=central_ops_headers)
        assert response.status_code == 403
        assert db_session.query(ReportSubmission).count() == 0


class TestSaveMetricValue:

    def test_save_and_upsert(self, client, auth_headers, db_session, metrics, allocations):
        metric_id = metrics["users"].metric_id
        response = _save(client, auth_headers, "FIPS-0001", metric_id, "10")
        assert response.status_code == 200
        first = response.json()
        assert first["value"] == "10"
        assert first["reporting_period"] == "2025-august"
        assert first["submitted_by"] == "reporter@example.com"

        response = _save(client, auth_headers, "FIPS-0001", metric_id, "20")
        assert response.status_code == 200
        assert response.json()["data_id"] == first["data_id"]

        rows = db_session.query(PerformanceMetricData).filter(
            PerformanceMetricData.metric_id == metric_id,
            PerformanceMetricData.product_id == "FIPS-0001"
        ).all()
        assert len(rows) == 1
        assert rows[0].value == "20"

    def test_validation_failure_detail(self, client, auth_headers, db_session, metrics, allocations):
        response = _save(client, auth_headers, "FIPS-0001", metrics["users"].metric_id, "150")
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["field"] == "value"
        assert detail["message"] == "'Active users' must be no more than 100."
        assert detail["value"] == "150"
        assert db_session.query(PerformanceMetricData).count() == 0

    def test_mandatory_empty_rejected(self, client, auth_headers, metrics, allocations):
        response = _save(client, auth_headers, "FIPS-0001", metrics["users"].metric_id, "")
        assert response.status_code == 422
        assert response.json()["detail"]["message"] == "'Active users' is mandatory and must be completed."

    def test_null_return(self, client, auth_headers, metrics, allocations):
        response = _save(
            client, auth_headers, "FIPS-0001", metrics["availability"].metric_id, "", is_null_return=True
        )
        assert response.status_code == 200
        data = response.json()
        assert data["is_null_return"] is True
        assert data["value"] is None

    def test_null_return_not_allowed(self, client, auth_headers, metrics, allocations):
        response = _save(client, auth_headers, "FIPS-0001", metrics["users"].metric_id, "", is_null_return=True)
        assert response.status_code == 422

    def test_disabled_metric_not_found(self, client, auth_headers, metrics, allocations):
        response = _save(client, auth_headers, "FIPS-0001", metrics["retired"].metric_id, "anything")
        assert response.status_code == 404

    def test_not_allocated_forbidden(self, client, second_user_headers, metrics, allocations):
        response = _save(client, second_user_headers, "FIPS-0001", metrics["users"].metric_id, "5")
        assert response.status_code == 403


class TestProductSubmit:

    def test_incomplete_product_rejected(self, client, auth_headers, metrics, allocations):
        _save(client, auth_headers, "FIPS-0001", metrics["users"].metric_id, "5")
        response = client.post(f"{BASE}/products/FIPS-0001/submit", headers=auth_headers)
        assert response.status_code == 400

    def test_complete_product_submitted(self, client, auth_headers, db_session, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")
        response = client.post(f"{BASE}/products/FIPS-0001/submit", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["values_locked"] == 3

        rows = db_session.query(PerformanceMetricData).filter(
            PerformanceMetricData.product_id == "FIPS-0001"
        ).all()
        assert all(row.is_submitted for row in rows)

        data = client.get(f"{BASE}/products/FIPS-0001", headers=auth_headers).json()
        assert data["submission_status"] == "Submitted"

    def test_editing_submitted_value_keeps_it_submitted(self, client, auth_headers, db_session, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")
        client.post(f"{BASE}/products/FIPS-0001/submit", headers=auth_headers)
        response = _save(client, auth_headers, "FIPS-0001", metrics["users"].metric_id, "43")
        assert response.status_code == 200
        assert response.json()["is_submitted"] is True


class TestReturnSubmit:

    def test_incomplete_return_rejected(self, client, auth_headers, db_session, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")
        response = client.post(f"{BASE}/submit", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["incomplete_products"] == ["FIPS-0002"]
        assert db_session.query(ReportSubmission).count() == 0

        data = client.get(BASE, headers=auth_headers).json()
        assert data["is_submitted"] is False
        assert data["completed_products"] == 1

    def test_no_allocations_rejected(self, client, second_user_headers, metrics):
        response = client.post(f"{BASE}/submit", headers=second_user_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["incomplete_products"] == []

    def test_complete_return_submitted(self, client, auth_headers, db_session, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")
        _complete_product(client, auth_headers, metrics, "FIPS-0002")

        before = client.get(BASE, headers=auth_headers).json()
        assert before["state"] == "COMPLETE"
        assert before["submission_status"] == "Ready to submit"

        response = client.post(f"{BASE}/submit", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Submitted"
        assert data["reporting_period"] == "2025-august"

        after = client.get(BASE, headers=auth_headers).json()
        assert after["is_submitted"] is True
        assert after["state"] == "SUBMITTED"
        assert after["submission_status"] == "Submitted"
        assert {p["submission_status"] for p in after["products"]} == {"Submitted"}

    def test_resubmission_keeps_single_record(self, client, auth_headers, db_session, metrics, allocations):
        _complete_product(client, auth_headers, metrics, "FIPS-0001")
        _complete_product(client, auth_headers, metrics, "FIPS-0002")

        first = client.post(f"{BASE}/submit", headers=auth_headers).json()
        second = client.post(f"{BASE}/submit", headers=auth_headers)
        assert second.status_code == 200
        assert second.json()["submission_id"] == first["submission_id"]
        assert db_session.query(ReportSubmission).count() == 1

    def test_disabling_metric_changes_total(self, client, auth_headers, admin_headers, metrics, allocations):
        for product_id in ("FIPS-0001", "FIPS-0002"):
            _save(client, auth_headers, product_id, metrics["users"].metric_id, "1")
            _save(client, auth_headers, product_id, metrics["availability"].metric_id, "50")

        assert client.get(BASE, headers=auth_headers).json()["completed_products"] == 0

        client.post(f"/performance-metrics/{metrics['hosting'].metric_id}/disable", headers=admin_headers)
        data = client.get(BASE, headers=auth_headers).json()
        assert data["completed_products"] == 2
        assert data["submission_status"] == "Ready to submit"
