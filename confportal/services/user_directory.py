from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import or_

from ..app import db
from ..constants import (
    APPROVAL_FILTERS,
    DEFAULT_PER_PAGE,
    EDITABLE_USER_FIELDS,
    PER_PAGE_CHOICES,
    ROLES,
    SHOWED_UP_FILTERS,
)
from ..models import User


class UserUpdateError(ValueError):
    pass


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class UserFilter:
    """Listing state for the admin dashboard, rebuilt on every request."""

    search: str = ""
    role: str = ""
    approval: str = ""
    showed_up: str = ""
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "UserFilter":
        role = (args.get("role") or "").strip().lower()
        approval = (args.get("approval") or "").strip().lower()
        showed_up = (args.get("showed_up") or "").strip().lower()
        per_page = _positive_int(args.get("per_page"), DEFAULT_PER_PAGE)
        return cls(
            search=(args.get("q") or "").strip(),
            role=role if role in ROLES else "",
            approval=approval if approval in APPROVAL_FILTERS else "",
            showed_up=showed_up if showed_up in SHOWED_UP_FILTERS else "",
            page=_positive_int(args.get("page"), 1),
            per_page=per_page if per_page in PER_PAGE_CHOICES else DEFAULT_PER_PAGE,
        )


@dataclass(frozen=True)
class UserPage:
    items: list[User]
    total: int
    page: int
    pages: int
    per_page: int


def _filtered_query(flt: UserFilter):
    query = db.session.query(User)
    if flt.search:
        term = flt.search.lower()
        query = query.filter(
            or_(
                db.func.lower(User.first_name).contains(term, autoescape=True),
                db.func.lower(User.last_name).contains(term, autoescape=True),
                db.func.lower(User.email).contains(term, autoescape=True),
                db.func.lower(User.affiliation).contains(term, autoescape=True),
            )
        )
    if flt.role:
        query = query.filter(User.role == flt.role)
    if flt.approval:
        query = query.filter(User.approved.is_(flt.approval == "approved"))
    if flt.showed_up:
        query = query.filter(User.showed_up.is_(flt.showed_up == "true"))
    return query


def list_users(flt: UserFilter) -> UserPage:
    query = _filtered_query(flt)
    total = query.count()
    pages = max(1, math.ceil(total / flt.per_page))
    page = min(flt.page, pages)
    full_name = db.func.lower(
        db.func.coalesce(User.first_name, "") + " " + db.func.coalesce(User.last_name, "")
    )
    items = (
        query.order_by(full_name, User.id)
        .offset((page - 1) * flt.per_page)
        .limit(flt.per_page)
        .all()
    )
    return UserPage(items=items, total=total, page=page, pages=pages, per_page=flt.per_page)


def get_user(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def find_user_by_email(email: str) -> User | None:
    return (
        db.session.query(User)
        .filter(db.func.lower(User.email) == (email or "").strip().lower())
        .one_or_none()
    )


def approve_user(user: User) -> User:
    user.approved = True
    db.session.commit()
    return user


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", ""):
        return False
    raise UserUpdateError(f"Invalid boolean value: {value!r}")


def update_user_field(user: User, field: str, value: Any) -> User:
    if field not in EDITABLE_USER_FIELDS:
        raise UserUpdateError(f"Field cannot be edited: {field}")
    if field == "role":
        if not isinstance(value, str):
            raise UserUpdateError(f"Invalid value for {field}")
        value = value.strip().lower()
        if value not in ROLES:
            raise UserUpdateError(f"Unknown role: {value}")
    elif field == "showed_up":
        value = _coerce_bool(value)
    else:
        if value is not None and not isinstance(value, str):
            raise UserUpdateError(f"Invalid value for {field}")
        value = (value or "").strip()
    setattr(user, field, value)
    db.session.commit()
    return user


def rename_user(user: User, first_name: str | None, last_name: str | None) -> User:
    for value in (first_name, last_name):
        if value is not None and not isinstance(value, str):
            raise UserUpdateError("Names must be text")
    first = (first_name or "").strip()
    last = (last_name or "").strip()
    if not first and not last:
        raise UserUpdateError("First or last name required")
    user.first_name = first
    user.last_name = last
    db.session.commit()
    return user


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "first_name": user.first_name or "",
        "last_name": user.last_name or "",
        "affiliation": user.affiliation or "",
        "role": user.role,
        "approved": bool(user.approved),
        "showed_up": bool(user.showed_up),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
