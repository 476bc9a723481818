import io

from flask import Blueprint, abort, current_app, send_file

from ..app import db
from ..models import User
from ..shared.certificates import CertificateError, generate_for_config
from ..shared.rbac import can_view_certificate, login_required


bp = Blueprint("certificates", __name__, url_prefix="/certificates")


def _generate_for(owner: User):
    try:
        result = generate_for_config(
            owner.first_name, owner.last_name, current_app.config
        )
    except CertificateError:
        current_app.logger.exception("[CERT-FAIL] user=%s", owner.id)
        raise
    current_app.logger.info(
        "[CERT] user=%s font=%s file=%s",
        owner.id,
        result.font.family,
        result.filename,
    )
    return result


def _owner_or_abort(user_id: int, current_user: User) -> User:
    # non-admins may only address their own id
    if not current_user.is_admin and user_id != current_user.id:
        abort(403)
    owner = db.session.get(User, user_id)
    if not owner:
        abort(404)
    if not can_view_certificate(current_user, owner):
        abort(403)
    return owner


@bp.get("/<int:user_id>.pdf")
@login_required
def download(user_id: int, current_user):
    owner = _owner_or_abort(user_id, current_user)
    result = _generate_for(owner)
    return send_file(
        io.BytesIO(result.pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=result.filename,
    )


@bp.get("/<int:user_id>/preview.jpg")
@login_required
def preview(user_id: int, current_user):
    owner = _owner_or_abort(user_id, current_user)
    result = _generate_for(owner)
    return send_file(io.BytesIO(result.preview_jpeg), mimetype="image/jpeg")
