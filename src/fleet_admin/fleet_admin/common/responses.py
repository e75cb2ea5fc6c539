from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def ok(data: Any = None, status: int = 200, **extra: Any):
    payload = {"success": True, "data": data if data is not None else {}}
    payload.update(extra)
    return jsonify(payload), status


def fail(error: str, status: int):
    return jsonify({"success": False, "error": error}), status


def json_body() -> dict:
    """Request body as a dict; anything else is a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}


def api_errors(view):
    """Translate domain exceptions raised by a view into `{success: false, error}` responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except AuthenticationError as e:
            return fail(str(e), 401)
        except AuthorizationError as e:
            return fail(str(e), 403)
        except Exception as e:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return fail(str(e), 500)

    return wrapper
