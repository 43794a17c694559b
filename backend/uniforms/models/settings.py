from __future__ import annotations

from ..extensions import db


class SystemSetting(db.Model):
    """
    Process-wide key/value settings (e.g. COOLDOWN_DAYS).

    Values are stored as text; readers parse and fall back to their own defaults.
    """
    __tablename__ = "system_settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
