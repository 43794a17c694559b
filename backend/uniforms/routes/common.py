# Overview: Response helpers shared by the API blueprints.

from __future__ import annotations

from flask import current_app, jsonify

from ..errors import UniformError
from ..extensions import db


def ok(data, status: int = 200):
    return jsonify({"data": data}), status


def json_error(exc: Exception, context: str):
    """
    Map an exception to the JSON error envelope.

    Domain errors keep their code and status; anything else is logged and
    answered as INTERNAL_SERVER_ERROR without leaking details.
    """
    db.session.rollback()
    if isinstance(exc, UniformError):
        if exc.http_status >= 500:
            current_app.logger.error("%s: %s", context, exc.message)
        return jsonify(exc.to_dict()), exc.http_status

    current_app.logger.exception(context)
    return jsonify(UniformError().to_dict()), 500
