from __future__ import annotations

from ..extensions import db


class Store(db.Model):
    """Physical store a staff member works at."""
    __tablename__ = "stores"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"


class Role(db.Model):
    """
    Staff role (MANAGER, CASUAL, ...).

    Names are case-insensitive on input and always stored upper-case.
    Allowance limits and cooldown overrides hang off the role in their own
    tables so that an absent row means "use the compiled-in default".
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    allowance_limit = db.relationship(
        "RoleAllowanceLimit", uselist=False, back_populates="role", cascade="all, delete-orphan"
    )
    cooldown_limit = db.relationship(
        "RoleCooldownLimit", uselist=False, back_populates="role", cascade="all, delete-orphan"
    )

    @staticmethod
    def normalize_name(name: str | None) -> str:
        return str(name or "").strip().upper()

    def __repr__(self) -> str:
        return f"<Role id={self.id} name={self.name!r}>"


class Staff(db.Model):
    """
    A staff member eligible for uniform issue.

    The role assignment is treated as fixed by the request engine.
    """
    __tablename__ = "staff"
    __table_args__ = (
        db.Index("ix_staff_store_role", "store_id", "role_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("staff", lazy=True))
    role = db.relationship("Role", backref=db.backref("staff", lazy=True))

    def __repr__(self) -> str:
        return f"<Staff id={self.id} name={self.name!r} store_id={self.store_id}>"


class RoleAllowanceLimit(db.Model):
    """Persisted override of a role's annual uniform allowance."""
    __tablename__ = "role_allowance_limits"
    __table_args__ = (
        db.CheckConstraint("annual_limit >= 0", name="ck_role_allowance_limits_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False, unique=True)
    annual_limit = db.Column(db.Integer, nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    role = db.relationship("Role", back_populates="allowance_limit")

    def to_dict(self) -> dict:
        return {"role": self.role.name, "annual_limit": self.annual_limit}


class RoleCooldownLimit(db.Model):
    """Persisted override of a role's cooldown between re-requests of one item."""
    __tablename__ = "role_cooldown_limits"
    __table_args__ = (
        db.CheckConstraint("cooldown_days >= 0", name="ck_role_cooldown_limits_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False, unique=True)
    cooldown_days = db.Column(db.Integer, nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    role = db.relationship("Role", back_populates="cooldown_limit")

    def to_dict(self) -> dict:
        return {"role": self.role.name, "cooldown_days": self.cooldown_days}
