"""
사용자(User) API 테스트.
- 생성 / 중복 username 409 / 관리자 순환 400
- Soft Delete 후 조회 제외, 같은 username 재사용 가능
- 목록 페이지네이션 envelope
"""

from sqlalchemy import select

from app.core.security import verify_password
from app.models import AuditLog, User, UserStatus
from tests.helpers import admin_header, claims_header, create_group, create_user_in_db


def test_create_user_hashes_password_and_audits(client, db_session):
    r = client.post(
        "/users",
        json={"username": "newhire", "password": "Secret123!", "full_name": "New Hire", "level_security": 2},
        headers=admin_header("boss"),
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["username"] == "newhire"
    assert data["user_status"] == UserStatus.ACTIVE.value
    assert "password_hash" not in data

    db_session.expire_all()
    user = db_session.scalar(select(User).where(User.username == "newhire"))
    assert user.password_hash != "Secret123!"
    assert verify_password("Secret123!", user.password_hash)

    log = db_session.scalar(select(AuditLog).where(AuditLog.target_id == str(user.id)))
    assert log.actor == "boss"
    assert log.entity_id == "USERS"
    assert log.data_after["username"] == "newhire"


def test_duplicate_username_is_409(client, db_session):
    create_user_in_db(db_session, username="taken")
    r = client.post("/users", json={"username": "taken", "password": "Secret123!"}, headers=admin_header())
    assert r.status_code == 409


def test_create_user_with_unknown_group_is_404(client):
    r = client.post("/users", json={"username": "lost", "password": "Secret123!", "group_id": "Nope"}, headers=admin_header())
    assert r.status_code == 404


def test_manager_cycle_is_rejected(client, db_session):
    top = create_user_in_db(db_session, username="top")
    mid = create_user_in_db(db_session, username="mid", manage_by=top.id)
    low = create_user_in_db(db_session, username="low", manage_by=mid.id)
    top_id, low_id = str(top.id), str(low.id)

    r = client.put(f"/users/{top_id}", json={"manage_by": low_id}, headers=admin_header())
    assert r.status_code == 400

    r = client.put(f"/users/{top_id}", json={"manage_by": top_id}, headers=admin_header())
    assert r.status_code == 400

    subordinates = client.get(f"/users/manager/{top_id}", headers=admin_header()).json()["data"]
    assert [u["username"] for u in subordinates] == ["mid"]


def test_update_user_rejects_null_required_fields(client, db_session):
    user = create_user_in_db(db_session, username="steady")
    user_id = str(user.id)

    for body in ({"level_security": None}, {"user_status": None}):
        r = client.put(f"/users/{user_id}", json=body, headers=admin_header())
        assert r.status_code == 400, body

    # null 허용 컬럼은 그대로 비울 수 있음
    r = client.put(f"/users/{user_id}", json={"department": None, "level_security": 3}, headers=admin_header())
    assert r.status_code == 200, r.text
    assert r.json()["data"]["level_security"] == 3


def test_update_user_fields(client, db_session):
    create_group(db_session, "Ops")
    user = create_user_in_db(db_session, username="editme")
    user_id = str(user.id)

    r = client.put(
        f"/users/{user_id}",
        json={"full_name": "Edited", "group_id": "Ops", "level_security": 3, "user_status": -1},
        headers=admin_header(),
    )
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["full_name"] == "Edited"
    assert data["group_id"] == "Ops"
    assert data["level_security"] == 3
    assert data["user_status"] == UserStatus.SUSPENDED.value
    assert data["updated_at"] is not None


def test_soft_delete_hides_user_and_frees_username(client, db_session):
    user = create_user_in_db(db_session, username="leaver")
    user_id = str(user.id)

    r = client.delete(f"/users/{user_id}", headers=admin_header())
    assert r.status_code == 200, r.text

    assert client.get(f"/users/{user_id}", headers=admin_header()).status_code == 404
    assert client.get("/users/username/leaver", headers=admin_header()).status_code == 404
    assert client.get("/users/check-username/leaver", headers=admin_header()).json()["exists"] is False

    db_session.expire_all()
    assert db_session.get(User, user.id).user_status == UserStatus.DELETED.value

    r = client.post("/users", json={"username": "leaver", "password": "Secret123!"}, headers=admin_header())
    assert r.status_code == 201, r.text


def test_hard_delete_removes_row(client, db_session):
    manager = create_user_in_db(db_session, username="mgr")
    report = create_user_in_db(db_session, username="report", manage_by=manager.id)
    manager_id, report_id = manager.id, report.id

    r = client.delete(f"/users/{manager_id}/permanent", headers=admin_header())
    assert r.status_code == 200, r.text

    db_session.expire_all()
    assert db_session.get(User, manager_id) is None
    assert db_session.get(User, report_id).manage_by is None


def test_list_users_envelope_and_page_size_normalization(client, db_session):
    for i in range(12):
        create_user_in_db(db_session, username=f"p{i:02d}")
    create_user_in_db(db_session, username="deleted", status=UserStatus.DELETED)

    r = client.get("/users?page=2&page_size=5&sort_by=username&sort_dir=asc", headers=admin_header())
    assert r.status_code == 200, r.text
    body = r.json()
    assert [u["username"] for u in body["data"]] == ["p05", "p06", "p07", "p08", "p09"]
    assert body["meta"] == {
        "current_page": 2,
        "page_size": 5,
        "total_count": 12,
        "total_pages": 3,
        "has_next_page": True,
        "has_previous_page": True,
    }

    # 범위를 벗어난 page / page_size 는 기본값으로 보정
    r = client.get("/users?page=0&page_size=1000", headers=admin_header())
    meta = r.json()["meta"]
    assert meta["current_page"] == 1
    assert meta["page_size"] == 10
    assert len(r.json()["data"]) == 10


def test_list_users_search_and_bad_sort(client, db_session):
    create_user_in_db(db_session, username="alice", full_name="Alice Tran")
    create_user_in_db(db_session, username="bob", full_name="Bob Le")

    found = client.get("/users?search=Tran", headers=admin_header()).json()["data"]
    assert [u["username"] for u in found] == ["alice"]

    assert client.get("/users?sort_by=password_hash", headers=admin_header()).status_code == 400


def test_users_by_security_level(client, db_session):
    create_user_in_db(db_session, username="l1", level_security=1)
    create_user_in_db(db_session, username="l3", level_security=3)
    create_user_in_db(db_session, username="l5", level_security=5)

    low = client.get("/users/security-level/3", headers=admin_header()).json()["data"]
    assert [u["username"] for u in low] == ["l1", "l3"]

    high = client.get("/users/security-level/3?less_than=false", headers=admin_header()).json()["data"]
    assert [u["username"] for u in high] == ["l3", "l5"]


def test_change_password_by_admin(client, db_session):
    user = create_user_in_db(db_session, username="forgot")

    r = client.post(
        "/users/change-password",
        json={"user_id": str(user.id), "new_password": "Replaced123!"},
        headers=admin_header(),
    )
    assert r.status_code == 200, r.text

    login = client.post("/auth/login", json={"username": "forgot", "password": "Replaced123!"})
    assert login.status_code == 200, login.text


def test_me_returns_caller_profile(client, db_session):
    create_user_in_db(db_session, username="self", full_name="Myself")

    r = client.get("/users/me", headers=claims_header("READ.Students", username="self"))
    assert r.status_code == 200, r.text
    assert r.json()["data"]["full_name"] == "Myself"
    assert r.json()["permissions"] == ["READ.Students"]

    assert client.get("/users/me", headers=claims_header(username="nobody")).status_code == 404


def test_user_endpoints_require_user_claims(client, db_session):
    user = create_user_in_db(db_session, username="guarded")
    assert client.get("/users", headers=claims_header("READ.GROUPS")).status_code == 403
    assert client.delete(f"/users/{user.id}", headers=claims_header("UPDATE.USERS")).status_code == 403
