# Overview: Tenant and user management with bcrypt password hashing.

"""
Authentication Service

Users belong to exactly one tenant; email is unique within that tenant.
Passwords are bcrypt-hashed (cost 12) after a strength check.
"""

import re

import bcrypt

from ..extensions import db
from ..models import Tenant, User
from orderdesk.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with upper, lower, digit and special character.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")
    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")
    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never verify."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_tenant(name: str, code: str | None = None) -> Tenant:
    name = (name or "").strip()
    if not name:
        raise ValueError("Tenant name is required")
    code = (code or "").strip() or None
    if code and db.session.query(Tenant).filter_by(code=code).first():
        raise ValueError(f"Tenant code {code!r} already exists")

    tenant = Tenant(name=name, code=code, is_active=True)
    db.session.add(tenant)
    db.session.commit()
    return tenant


def create_user(tenant_id: int, email: str, password: str, display_name: str | None = None) -> User:
    """
    Create a user inside a tenant.

    Raises:
        ValueError: tenant missing/inactive or email already used in the tenant
        PasswordValidationError: weak password
    """
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        raise ValueError("Tenant not found")
    if not tenant.is_active:
        raise ValueError("Tenant is not active")

    email = (email or "").strip().lower()
    if not email:
        raise ValueError("Email is required")

    existing = db.session.query(User).filter_by(tenant_id=tenant_id, email=email).first()
    if existing:
        raise ValueError("Email already exists in this tenant")

    user = User(
        tenant_id=tenant_id,
        email=email,
        display_name=display_name,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str, tenant_id: int | None = None) -> User | None:
    """
    Return the active user for these credentials, or None.

    When tenant_id is omitted and the email exists in several tenants, the
    first user whose password matches wins.
    """
    email = (email or "").strip().lower()
    query = db.session.query(User).filter(User.email == email, User.is_active.is_(True))
    if tenant_id is not None:
        query = query.filter(User.tenant_id == tenant_id)

    for user in query.order_by(User.id.asc()).all():
        if not user.tenant or not user.tenant.is_active:
            continue
        if verify_password(password, user.password_hash):
            user.last_login_at = utcnow()
            db.session.commit()
            return user
    return None
