# backend/uniforms/routes/system.py
"""
Liveness endpoint.
"""

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Database health check failed")
        return jsonify({"status": "unhealthy", "database": "error"}), 503
    return jsonify({"status": "ok"}), 200
