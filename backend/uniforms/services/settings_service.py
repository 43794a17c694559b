# Overview: Global settings and the role-value resolution used for limits and cooldowns.

from __future__ import annotations

from typing import Any, Mapping

from ..extensions import db
from ..models import SystemSetting
from ..validation import parse_non_negative_int
from .concurrency import transaction


COOLDOWN_KEY = "COOLDOWN_DAYS"
DEFAULT_COOLDOWN_DAYS = 30

# Compiled-in annual allowance per role; persisted overrides win per lookup
DEFAULT_ROLE_LIMITS = {
    "MANAGER": 5,
    "CASUAL": 2,
}


def _parse_setting_int(raw: Any) -> int | None:
    """Stored settings are text; anything but a plain integer reads as unset."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def resolve_role_value(
    role_name: str | None,
    overrides: Mapping[str, Any],
    defaults: Mapping[str, int],
) -> int | None:
    """
    Merge persisted per-role overrides over compiled-in defaults and look up one role.

    Role names are compared upper-cased. Returns None when the role is not
    configured in either table or the configured value is not an integer.
    Range checks are left to the caller.
    """
    merged = {str(k).upper(): v for k, v in defaults.items()}
    merged.update({str(k).upper(): v for k, v in overrides.items()})
    return _parse_setting_int(merged.get(str(role_name or "").strip().upper()))


def get_setting(key: str) -> SystemSetting | None:
    return db.session.get(SystemSetting, key)


def get_cooldown_days() -> int:
    """Global cooldown in days; unset or malformed values fall back to the default."""
    row = get_setting(COOLDOWN_KEY)
    parsed = _parse_setting_int(row.value if row else None)
    if parsed is None or parsed < 0:
        return DEFAULT_COOLDOWN_DAYS
    return parsed


def update_cooldown_days(value: Any) -> int:
    days = parse_non_negative_int(value, "cooldown_days")

    with transaction():
        row = get_setting(COOLDOWN_KEY)
        if row:
            row.value = str(days)
        else:
            db.session.add(SystemSetting(key=COOLDOWN_KEY, value=str(days)))

    return days
