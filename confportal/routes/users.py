from flask import Blueprint, abort, current_app, jsonify, request

from ..services.user_directory import (
    UserFilter,
    UserUpdateError,
    approve_user,
    get_user,
    list_users,
    rename_user,
    update_user_field,
    user_to_dict,
)
from ..shared.rbac import admin_required


bp = Blueprint("users", __name__, url_prefix="/admin/users")


def _user_or_404(user_id: int):
    user = get_user(user_id)
    if not user:
        abort(404)
    return user


def _json_object() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise UserUpdateError("Expected a JSON object")
    return payload


@bp.get("/")
@admin_required
def index(current_user):
    flt = UserFilter.from_args(request.args)
    page = list_users(flt)
    return jsonify(
        users=[user_to_dict(u) for u in page.items],
        total=page.total,
        page=page.page,
        pages=page.pages,
        per_page=page.per_page,
    )


@bp.post("/<int:user_id>/approve")
@admin_required
def approve(user_id: int, current_user):
    user = approve_user(_user_or_404(user_id))
    current_app.logger.info(
        "[USERS] approved user=%s (%s) by=%s", user.id, user.display_name, current_user.id
    )
    return jsonify(user=user_to_dict(user))


@bp.post("/<int:user_id>/field")
@admin_required
def update_field(user_id: int, current_user):
    user = _user_or_404(user_id)
    try:
        payload = _json_object()
        field = payload.get("field") or ""
        update_user_field(user, field, payload.get("value"))
    except UserUpdateError as exc:
        return jsonify(error=str(exc)), 400
    current_app.logger.info(
        "[USERS] user=%s field=%s by=%s", user.id, field, current_user.id
    )
    return jsonify(user=user_to_dict(user))


@bp.post("/<int:user_id>/name")
@admin_required
def rename(user_id: int, current_user):
    user = _user_or_404(user_id)
    try:
        payload = _json_object()
        rename_user(user, payload.get("first_name"), payload.get("last_name"))
    except UserUpdateError as exc:
        return jsonify(error=str(exc)), 400
    current_app.logger.info("[USERS] renamed user=%s by=%s", user.id, current_user.id)
    return jsonify(user=user_to_dict(user))
