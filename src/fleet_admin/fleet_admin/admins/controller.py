from __future__ import annotations

from flask import Flask, request, session

from ..common.responses import api_errors, fail, json_body, ok
from ..common.validators import parse_id
from ..container import Container
from ..core.exceptions import AuthenticationError

SESSION_KEY = "admin"

# Reachable without a session even when REQUIRE_AUTH is on.
PUBLIC_ENDPOINTS = {"auth_login", "auth_logout", "admins_init"}


def register(app: Flask, container: Container) -> None:
    admins = container.admin_service
    auth = container.auth_service

    @app.before_request
    def require_session():
        if not app.config.get("REQUIRE_AUTH", False):
            return None
        if not request.path.startswith("/api/") or request.endpoint in PUBLIC_ENDPOINTS:
            return None
        if SESSION_KEY not in session:
            return fail("Not authenticated", 401)
        return None

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @api_errors
    def auth_login():
        body = json_body()
        s_admin = auth.authenticate(body.get("username"), body.get("password"))

        session.clear()
        session.permanent = True
        session[SESSION_KEY] = s_admin.to_dict()
        return ok({"username": s_admin.username, "role": s_admin.role.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @api_errors
    def auth_logout():
        session.clear()
        return ok({}, message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @api_errors
    def auth_me():
        current = session.get(SESSION_KEY)
        if not current:
            raise AuthenticationError("Not authenticated")
        return ok(current)

    @app.route("/api/admins", methods=["GET"], endpoint="admins_list")
    @api_errors
    def admins_list():
        return ok([a.to_dict() for a in admins.list_admins()])

    @app.route("/api/admins", methods=["POST"], endpoint="admins_create")
    @api_errors
    def admins_create():
        return ok(admins.create(json_body()).to_dict(), 201)

    @app.route("/api/admins/init", methods=["POST"], endpoint="admins_init")
    @api_errors
    def admins_init():
        created = admins.initialize_defaults()
        return ok([a.to_dict() for a in created], 201, message="Admin accounts initialized")

    @app.route("/api/admins/<admin_id>", methods=["PUT"], endpoint="admins_update")
    @api_errors
    def admins_update(admin_id: str):
        return ok(admins.update(parse_id(admin_id, "admin ID"), json_body()).to_dict())

    @app.route("/api/admins/<admin_id>", methods=["DELETE"], endpoint="admins_delete")
    @api_errors
    def admins_delete(admin_id: str):
        admins.delete(parse_id(admin_id, "admin ID"))
        return ok({})
