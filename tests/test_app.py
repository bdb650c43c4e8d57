from models.audit_log import AuditLog
from models.subscription import Subscription


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_security_headers(client):
    resp = client.get("/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_is_json(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_unexpected_errors_are_generic(app, caplog):
    def boom():
        raise RuntimeError("database password is hunter2")

    app.add_url_rule("/boom", "boom", boom)
    resp = app.test_client().get("/boom")

    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Internal server error"}
    assert "hunter2" in caplog.text


def test_grant_subscription_command(app):
    result = app.test_cli_runner().invoke(args=["grant-subscription", "7", "premium", "--cycle", "yearly"])
    assert result.exit_code == 0, result.output
    assert "premium" in result.output

    sub = Subscription.find_active(7)
    assert sub is not None
    assert sub.billing_cycle == "yearly"
    assert AuditLog.query.filter_by(action="SUBSCRIPTION_GRANT").count() == 1


def test_grant_subscription_rejects_unknown_plan(app):
    result = app.test_cli_runner().invoke(args=["grant-subscription", "7", "gold"])
    assert result.exit_code != 0
