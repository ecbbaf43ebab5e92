import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix

from config import Config
from models import db
from models.account import Role
from routes import health_bp, auth_bp, account_bp, recovery_bp, admin_bp, audit_bp
from security.accounts import provision_account
from security.csrf import protect_request
from security.errors import SecurityError


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(account_bp)
    app.register_blueprint(recovery_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    proxies = int(app.config.get("TRUSTED_PROXY_COUNT", 0))
    if proxies:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies, x_proto=proxies)

    app.before_request(protect_request)

    @app.errorhandler(SecurityError)
    def _security_error(exc):
        if exc.status_code >= 500:
            app.logger.error("%s: %s", exc.kind, exc.reason)
        return jsonify(exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        resp.headers["Cache-Control"] = "no-store"
        return resp


    register_cli(app)


    return app

#-------------------------

def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables (use `flask db upgrade` for managed schemas)."""
        db.create_all()
        click.echo("Database initialised")

    @app.cli.command("create-account")
    @click.argument("username")
    @click.option("--role", type=click.Choice([Role.ADMIN.value, Role.MANAGER.value]), default=Role.ADMIN.value)
    @click.password_option()
    def create_account(username, role, password):
        """Provision an admin or manager account (bootstrap)."""
        try:
            account = provision_account(None, username, password, password, Role(role))
        except SecurityError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"{account.username} created as {account.role.value}")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
