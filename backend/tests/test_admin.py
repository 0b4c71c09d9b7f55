"""Tests for admin reconciliation, the CLI command and the points quote."""

from app import db
from app.cli import reconcile_progress_command
from app.models import UserProgress
from app.services import ProgressLedger


def _tamper(user_id, **fields):
    progress = UserProgress.query.filter_by(user_id=user_id).one()
    for key, value in fields.items():
        setattr(progress, key, value)
    db.session.commit()


class TestReconcileAPI:
    """POST /admin/progress/<user_id>/reconcile."""

    def test_corrects_drifted_points(self, client, admin_headers, test_user):
        ledger = ProgressLedger()
        ledger.apply_submission(test_user["id"], "p1", "mixed", 1)
        ledger.apply_submission(test_user["id"], "p2", "bottles", 1)
        _tamper(test_user["id"], total_points=9000, current_level=6)

        response = client.post(
            f"/api/v1/admin/progress/{test_user['id']}/reconcile",
            headers=admin_headers,
        )
        assert response.status_code == 200
        report = response.json["data"]
        assert report["stored_points"] == 9000
        assert report["ledger_points"] == 55
        assert report["current_level"] == 1
        assert report["corrected"] is True

        progress = UserProgress.query.filter_by(user_id=test_user["id"]).one()
        assert progress.total_points == 55
        assert progress.current_level == 1

    def test_consistent_ledger_is_untouched(self, client, admin_headers, test_user):
        ProgressLedger().apply_submission(test_user["id"], "p1", "mixed", 1)

        response = client.post(
            f"/api/v1/admin/progress/{test_user['id']}/reconcile",
            headers=admin_headers,
        )
        assert response.json["data"]["corrected"] is False

    def test_non_admin_forbidden(self, client, auth_headers, test_user):
        response = client.post(
            f"/api/v1/admin/progress/{test_user['id']}/reconcile",
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_admin_by_configured_id(self, app, client, auth_headers, test_user):
        app.config["ADMIN_USER_IDS"] = [test_user["id"]]
        response = client.get(
            f"/api/v1/admin/progress/{test_user['id']}", headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json["data"]["ledger_points"] == 0

    def test_unknown_user(self, client, admin_headers):
        response = client.post(
            "/api/v1/admin/progress/4242/reconcile", headers=admin_headers
        )
        assert response.status_code == 404


class TestReconcileCommand:
    """flask reconcile-progress."""

    def test_single_user(self, app, test_user):
        ProgressLedger().apply_submission(test_user["id"], "p1", "mixed", 1)
        _tamper(test_user["id"], total_points=1)

        result = app.test_cli_runner().invoke(
            reconcile_progress_command, ["--user-id", str(test_user["id"])]
        )
        assert result.exit_code == 0
        assert f"User {test_user['id']}: corrected (stored 1, ledger 20)" in result.output

    def test_all_users(self, app, test_user, other_user):
        ledger = ProgressLedger()
        ledger.apply_submission(test_user["id"], "p1", "mixed", 1)
        ledger.apply_submission(other_user["id"], "p2", "mixed", 1)
        _tamper(other_user["id"], total_points=0)

        result = app.test_cli_runner().invoke(reconcile_progress_command, [])
        assert result.exit_code == 0
        assert "Checked 2 users, corrected 1" in result.output

    def test_unknown_user_fails(self, app):
        result = app.test_cli_runner().invoke(
            reconcile_progress_command, ["--user-id", "4242"]
        )
        assert result.exit_code != 0
        assert "User not found" in result.output


class TestPointsQuoteAPI:
    """GET /points/quote."""

    def test_submitter_quote(self, auth_client, test_user):
        response = auth_client.get("/api/v1/points/quote?category=bottles&weight=1")
        assert response.status_code == 200
        assert response.json["data"] == {"points": 35, "earnings": 0}

    def test_collector_quote(self, auth_client, test_user):
        response = auth_client.get(
            "/api/v1/points/quote?category=paper&weight=2&role=collector"
        )
        assert response.json["data"] == {"points": 0, "earnings": 20}

    def test_bad_weight(self, auth_client, test_user):
        response = auth_client.get("/api/v1/points/quote?weight=lots")
        assert response.status_code == 400

    def test_unknown_role(self, auth_client, test_user):
        response = auth_client.get("/api/v1/points/quote?weight=1&role=driver")
        assert response.status_code == 400

    def test_non_finite_weight(self, auth_client, test_user):
        for weight in ("nan", "inf", "-inf"):
            response = auth_client.get(f"/api/v1/points/quote?weight={weight}")
            assert response.status_code == 400
            assert "weight" in response.json["error"]["details"]
