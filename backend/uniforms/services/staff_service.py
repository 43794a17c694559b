# Overview: Staff & role directory: lookups, allowance summaries and per-role limits.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


from ..extensions import db
from ..models import Store, Role, Staff, RoleAllowanceLimit, RoleCooldownLimit
from ..errors import NotFoundError, RequestValidationError
from ..validation import parse_non_negative_int
from . import allowance_service, settings_service
from .concurrency import transaction
from uniforms.time_utils import utcnow


DEFAULT_ROLES = ("MANAGER", "CASUAL")


@dataclass(frozen=True)
class StaffRecord:
    id: int
    name: str
    store_id: int
    store_name: str
    role_name: str


def get_staff_by_id(staff_id: int) -> StaffRecord | None:
    row = (
        db.session.query(Staff.id, Staff.name, Store.id, Store.name, Role.name)
        .join(Store, Store.id == Staff.store_id)
        .join(Role, Role.id == Staff.role_id)
        .filter(Staff.id == staff_id)
        .first()
    )
    if row is None:
        return None
    return StaffRecord(
        id=row[0],
        name=row[1],
        store_id=row[2],
        store_name=row[3],
        role_name=Role.normalize_name(row[4]),
    )


def get_role_by_name(role_name: str) -> Role | None:
    return db.session.query(Role).filter_by(name=Role.normalize_name(role_name)).first()


def _role_limit_overrides() -> dict[str, int]:
    rows = (
        db.session.query(Role.name, RoleAllowanceLimit.annual_limit)
        .join(RoleAllowanceLimit, RoleAllowanceLimit.role_id == Role.id)
        .all()
    )
    return {name: limit for name, limit in rows}


def _role_cooldown_overrides() -> dict[str, int]:
    rows = (
        db.session.query(Role.name, RoleCooldownLimit.cooldown_days)
        .join(RoleCooldownLimit, RoleCooldownLimit.role_id == Role.id)
        .all()
    )
    return {name: days for name, days in rows}


def get_annual_limit(role_name: str) -> int | None:
    """Persisted override, else compiled-in default, else None (role not configured)."""
    return settings_service.resolve_role_value(
        role_name, _role_limit_overrides(), settings_service.DEFAULT_ROLE_LIMITS
    )


def get_role_cooldown_days(role_name: str) -> int | None:
    return settings_service.resolve_role_value(role_name, _role_cooldown_overrides(), {})


def effective_cooldown_days(role_name: str) -> int:
    """
    Cooldown that applies to a role.

    Resolution: role override -> global COOLDOWN_DAYS setting -> 30 days.
    """
    role_days = get_role_cooldown_days(role_name)
    if role_days is not None and role_days >= 0:
        return role_days
    return settings_service.get_cooldown_days()


def list_staff(year: int | None = None) -> list[dict]:
    """Staff ordered by name, each with the allowance still available this year."""
    if year is None:
        year = utcnow().year

    used_by_staff = allowance_service.used_allowance_by_staff(year)
    overrides = _role_limit_overrides()

    staff_rows = (
        db.session.query(Staff.id, Staff.name, Store.name, Role.name)
        .join(Store, Store.id == Staff.store_id)
        .join(Role, Role.id == Staff.role_id)
        .order_by(Staff.name.asc(), Staff.id.asc())
        .all()
    )

    result = []
    for staff_id, name, store_name, role_name in staff_rows:
        role = Role.normalize_name(role_name)
        limit = settings_service.resolve_role_value(role, overrides, settings_service.DEFAULT_ROLE_LIMITS) or 0
        used = used_by_staff.get(staff_id, 0)
        result.append({
            "id": staff_id,
            "name": name,
            "store_name": store_name,
            "role": role,
            "used_allowance": used,
            "remaining_allowance": max(limit - used, 0),
        })
    return result


def list_role_limits() -> list[dict]:
    overrides = _role_limit_overrides()
    roles = db.session.query(Role).order_by(Role.name.asc()).all()
    return [
        {
            "role": role.name,
            "annual_limit": settings_service.resolve_role_value(
                role.name, overrides, settings_service.DEFAULT_ROLE_LIMITS
            ),
            "is_override": role.name in overrides,
        }
        for role in roles
    ]


def list_role_cooldowns() -> list[dict]:
    overrides = _role_cooldown_overrides()
    global_days = settings_service.get_cooldown_days()
    roles = db.session.query(Role).order_by(Role.name.asc()).all()
    return [
        {
            "role": role.name,
            "cooldown_days": overrides.get(role.name, global_days),
            "is_override": role.name in overrides,
        }
        for role in roles
    ]


def _require_role(role_name: Any) -> Role:
    normalized = Role.normalize_name(role_name)
    if not normalized:
        raise RequestValidationError("role_name is required.")
    role = get_role_by_name(normalized)
    if not role:
        raise NotFoundError("Role not found.")
    return role


def update_role_limit(role_name: Any, annual_limit: Any) -> dict:
    if not Role.normalize_name(role_name):
        raise RequestValidationError("role_name is required.")
    limit = parse_non_negative_int(annual_limit, "annual_limit")

    with transaction():
        role = _require_role(role_name)
        if role.allowance_limit:
            role.allowance_limit.annual_limit = limit
        else:
            role.allowance_limit = RoleAllowanceLimit(annual_limit=limit)
        result = role.allowance_limit.to_dict()

    return result


def update_role_cooldown(role_name: Any, cooldown_days: Any) -> dict:
    if not Role.normalize_name(role_name):
        raise RequestValidationError("role_name is required.")
    days = parse_non_negative_int(cooldown_days, "cooldown_days")

    with transaction():
        role = _require_role(role_name)
        if role.cooldown_limit:
            role.cooldown_limit.cooldown_days = days
        else:
            role.cooldown_limit = RoleCooldownLimit(cooldown_days=days)
        result = role.cooldown_limit.to_dict()

    return result


def ensure_role(role_name: str) -> Role:
    """Return the role, creating it if needed. Caller commits."""
    normalized = Role.normalize_name(role_name)
    if not normalized:
        raise RequestValidationError("role_name is required.")
    role = get_role_by_name(normalized)
    if role is None:
        role = Role(name=normalized)
        db.session.add(role)
        db.session.flush()
    return role


def ensure_default_roles() -> list[Role]:
    with transaction():
        roles = [ensure_role(name) for name in DEFAULT_ROLES]
    return roles


def ensure_store(name: str) -> Store:
    """Return the store, creating it if needed. Caller commits."""
    name = (name or "").strip()
    if not name:
        raise RequestValidationError("Store name is required.")
    store = db.session.query(Store).filter_by(name=name).first()
    if store is None:
        store = Store(name=name)
        db.session.add(store)
        db.session.flush()
    return store


def create_store(name: str) -> Store:
    with transaction():
        if db.session.query(Store).filter_by(name=(name or "").strip()).first():
            raise RequestValidationError(f"Store {name!r} already exists.")
        store = ensure_store(name)
    return store


def create_staff(name: str, store_name: str, role_name: str) -> Staff:
    """Create a staff member, creating the store and role on first use."""
    name = (name or "").strip()
    if not name:
        raise RequestValidationError("Staff name is required.")

    with transaction():
        store = ensure_store(store_name)
        role = ensure_role(role_name)
        staff = Staff(name=name, store_id=store.id, role_id=role.id)
        db.session.add(staff)
    return staff
