import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from routes import health_bp, bookings_bp, dietitians_bp, subscriptions_bp

from models import db
from flask_migrate import Migrate

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(dietitians_bp)
    app.register_blueprint(subscriptions_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return jsonify(success=False, message=exc.description), exc.code

    @app.errorhandler(Exception)
    def _unexpected_error(exc):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify(success=False, message="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        # JSON API only; the SPA is served elsewhere
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from models.subscription import Subscription, PLAN_TYPES, BILLING_CYCLES
from utils.audit import log_event

def register_cli(app):
    @app.cli.command("grant-subscription")
    @click.argument("user_id", type=int)
    @click.argument("plan", type=click.Choice(PLAN_TYPES))
    @click.option("--cycle", type=click.Choice(BILLING_CYCLES), default="monthly", show_default=True)
    def grant_subscription(user_id, plan, cycle):
        """Create and activate a subscription for a user (bootstrap/support)."""
        sub = Subscription(user_id=user_id, plan_type=plan, billing_cycle=cycle)
        sub.activate()
        db.session.add(sub)
        db.session.commit()

        log_event("SUBSCRIPTION_GRANT", user_id=user_id, entity="subscription", entity_id=sub.id,
                  metadata={"plan": plan, "cycle": cycle})
        click.echo(f"User {user_id} now on {plan} ({cycle}) until {sub.subscription_end_date:%Y-%m-%d}")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5000)
