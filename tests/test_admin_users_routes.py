from confportal.app import db
from confportal.models import User


def login(client, user_id):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id


def _seed(app):
    with app.app_context():
        admin = User(email="admin@biomedix.com", first_name="Ada", last_name="Min", role="admin", approved=True)
        member = User(email="m@uni.edu", first_name="Mia", last_name="Berg", affiliation="Uni")
        db.session.add_all([admin, member])
        db.session.commit()
        return admin.id, member.id


def test_non_admin_forbidden(app, client):
    _, member_id = _seed(app)
    assert client.get("/admin/users/").status_code == 401
    login(client, member_id)
    assert client.get("/admin/users/").status_code == 403
    assert client.post(f"/admin/users/{member_id}/approve").status_code == 403


def test_list_with_filters(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    resp = client.get("/admin/users/?approval=pending&q=uni")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["total"] == 1
    assert data["users"][0]["id"] == member_id
    assert data["per_page"] == 10


def test_approve(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    resp = client.post(f"/admin/users/{member_id}/approve")
    assert resp.status_code == 200
    assert resp.get_json()["user"]["approved"] is True
    assert db.session.get(User, member_id).approved is True


def test_approve_unknown_user(app, client):
    admin_id, _ = _seed(app)
    login(client, admin_id)
    assert client.post("/admin/users/999/approve").status_code == 404


def test_update_field(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    resp = client.post(
        f"/admin/users/{member_id}/field", json={"field": "role", "value": "organizer"}
    )
    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "organizer"
    resp = client.post(
        f"/admin/users/{member_id}/field", json={"field": "email", "value": "x@y.z"}
    )
    assert resp.status_code == 400
    assert "cannot be edited" in resp.get_json()["error"]


def test_rename(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    resp = client.post(
        f"/admin/users/{member_id}/name", json={"first_name": "Maria", "last_name": "Berg"}
    )
    assert resp.status_code == 200
    assert resp.get_json()["user"]["first_name"] == "Maria"
    resp = client.post(f"/admin/users/{member_id}/name", json={})
    assert resp.status_code == 400


def test_update_field_rejects_non_text_role(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    resp = client.post(f"/admin/users/{member_id}/field", json={"field": "role", "value": 5})
    assert resp.status_code == 400
    assert db.session.get(User, member_id).role == "general"


def test_rename_rejects_non_text_names(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    resp = client.post(
        f"/admin/users/{member_id}/name", json={"first_name": 7, "last_name": "B"}
    )
    assert resp.status_code == 400
    assert "text" in resp.get_json()["error"]


def test_non_object_payload_rejected(app, client):
    admin_id, member_id = _seed(app)
    login(client, admin_id)
    for suffix in ("field", "name"):
        resp = client.post(f"/admin/users/{member_id}/{suffix}", json=["role", "admin"])
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Expected a JSON object"
