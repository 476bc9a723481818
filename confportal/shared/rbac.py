from functools import wraps

from flask import abort, session

from ..app import db
from ..models import User


def _session_user() -> User:
    user_id = session.get("user_id")
    if not user_id:
        abort(401)
    user = db.session.get(User, user_id)
    if not user:
        abort(401)
    return user


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        return fn(*args, **kwargs, current_user=_session_user())

    return wrapper


def admin_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = _session_user()
        if not user.is_admin:
            abort(403)
        return fn(*args, **kwargs, current_user=user)

    return wrapper


def can_view_certificate(viewer: User, owner: User) -> bool:
    """Owners may fetch their own certificate once approved; admins any."""
    if viewer.is_admin:
        return True
    return viewer.id == owner.id and bool(owner.approved)
