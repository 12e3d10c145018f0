"""
인증 기본 플로우 통합 테스트.
- 개발용 토큰 발급 (고정 계정, roles=["Admin"], 30분 만료)
- 실제 로그인 → 유효 권한 claim 토큰 발급, 로그인 이력 기록
- 최초 비밀번호 변경 대기(PENDING) → 비밀번호 변경 → 로그인
- 정지 / 삭제 사용자 로그인 차단
"""

from sqlalchemy import select

from app.core.security import decode_access_token
from app.models import LoginHistory, UserStatus
from tests.helpers import (
    assign_role,
    auth_header,
    create_group,
    create_role,
    create_user_in_db,
    grant,
    link_group_role,
)


def test_dev_token_issued_for_configured_account(client):
    r = client.post("/auth/token", json={"username": "devadmin", "password": "devpassword"})
    assert r.status_code == 200, r.text

    payload = decode_access_token(r.json()["token"])
    assert payload["sub"] == "devadmin"
    assert payload["roles"] == ["Admin"]
    assert payload["exp"] - payload["iat"] == 30 * 60


def test_dev_token_rejects_other_credentials(client):
    r = client.post("/auth/token", json={"username": "devadmin", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid username or password"

    r = client.post("/auth/token", json={"username": "someone", "password": "devpassword"})
    assert r.status_code == 401


def test_dev_token_does_not_pass_permission_gates(client):
    token = client.post("/auth/token", json={"username": "devadmin", "password": "devpassword"}).json()["token"]
    # "Admin" 은 권한 문자열이 아니므로 게이트 통과 불가
    r = client.get("/users", headers=auth_header(token))
    assert r.status_code == 403


def test_login_embeds_effective_permissions(client, db_session):
    user = create_user_in_db(db_session, username="nurse01", full_name="Nguyen Van A")
    role = create_role(db_session, "Nurse")
    grant(db_session, role, "READ", "Students")
    grant(db_session, role, "UPDATE", "Students")
    assign_role(db_session, user, role)

    r = client.post(
        "/auth/login",
        json={"username": "nurse01", "password": "UserPassw0rd!", "mac_device": "AA:BB:CC:DD:EE:FF"},
        headers={"X-Forwarded-For": "10.0.0.7, 172.16.0.1"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["user_name"] == "nurse01"
    assert body["full_name"] == "Nguyen Van A"
    assert body["user_status"] == UserStatus.ACTIVE.value

    payload = decode_access_token(body["token"])
    assert payload["sub"] == "nurse01"
    assert payload["fullname"] == "Nguyen Van A"
    assert payload["roles"] == ["READ.Students", "UPDATE.Students"]

    db_session.expire_all()
    history = db_session.scalars(select(LoginHistory).where(LoginHistory.user_id == user.id)).all()
    assert len(history) == 1
    assert history[0].status_login == 1
    assert history[0].ip_address == "10.0.0.7"
    assert history[0].mac_device == "AA:BB:CC:DD:EE:FF"


def test_login_token_passes_gate_for_granted_claim(client, db_session):
    user = create_user_in_db(db_session, username="viewer")
    role = create_role(db_session, "Viewer")
    grant(db_session, role, "READ", "USERS")
    assign_role(db_session, user, role)

    token = client.post("/auth/login", json={"username": "viewer", "password": "UserPassw0rd!"}).json()["token"]
    assert client.get("/users", headers=auth_header(token)).status_code == 200
    assert client.get("/roles", headers=auth_header(token)).status_code == 403


def test_wrong_password_is_recorded_as_failed_login(client, db_session):
    user = create_user_in_db(db_session, username="clerk")

    r = client.post("/auth/login", json={"username": "clerk", "password": "nope"})
    assert r.status_code == 401
    assert r.headers.get("www-authenticate") == "Bearer"

    db_session.expire_all()
    history = db_session.scalars(select(LoginHistory).where(LoginHistory.user_id == user.id)).all()
    assert [h.status_login for h in history] == [0]


def test_unknown_suspended_and_deleted_users_cannot_login(client, db_session):
    create_user_in_db(db_session, username="suspended", status=UserStatus.SUSPENDED)
    create_user_in_db(db_session, username="deleted", status=UserStatus.DELETED)

    for username in ("ghost", "suspended", "deleted"):
        r = client.post("/auth/login", json={"username": username, "password": "UserPassw0rd!"})
        assert r.status_code == 401, username


def test_pending_user_must_change_password_first(client, db_session):
    create_user_in_db(db_session, username="newbie", password="TempPassw0rd!", status=UserStatus.PENDING)

    # 토큰 없이 상태만 반환
    r = client.post("/auth/login", json={"username": "newbie", "password": "TempPassw0rd!"})
    assert r.status_code == 200, r.text
    assert r.json()["token"] is None
    assert r.json()["user_status"] == UserStatus.PENDING.value

    # 확인 값 불일치
    r = client.post(
        "/auth/first-change-password",
        json={
            "username": "newbie",
            "current_password": "TempPassw0rd!",
            "new_password": "BrandNewPass1!",
            "confirm_password": "Different1234!",
        },
    )
    assert r.status_code == 400

    # 현재 비밀번호 불일치
    r = client.post(
        "/auth/first-change-password",
        json={
            "username": "newbie",
            "current_password": "wrong-password",
            "new_password": "BrandNewPass1!",
            "confirm_password": "BrandNewPass1!",
        },
    )
    assert r.status_code == 401

    r = client.post(
        "/auth/first-change-password",
        json={
            "username": "newbie",
            "current_password": "TempPassw0rd!",
            "new_password": "BrandNewPass1!",
            "confirm_password": "BrandNewPass1!",
        },
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["user_status"] == UserStatus.ACTIVE.value

    # 이전 비밀번호는 더 이상 사용 불가
    assert client.post("/auth/login", json={"username": "newbie", "password": "TempPassw0rd!"}).status_code == 401

    r = client.post("/auth/login", json={"username": "newbie", "password": "BrandNewPass1!"})
    assert r.status_code == 200, r.text
    assert r.json()["token"]


def test_first_change_password_only_for_pending_users(client, db_session):
    create_user_in_db(db_session, username="active1")
    r = client.post(
        "/auth/first-change-password",
        json={
            "username": "active1",
            "current_password": "UserPassw0rd!",
            "new_password": "BrandNewPass1!",
            "confirm_password": "BrandNewPass1!",
        },
    )
    assert r.status_code == 401


def test_current_permissions_lists_resolved_grants(client, db_session):
    group = create_group(db_session, "Ward")
    create_user_in_db(db_session, username="staff", group_id=group.id)
    role = create_role(db_session, "WardStaff")
    grant(db_session, role, "READ", "Students")
    link_group_role(db_session, group, role)

    token = client.post("/auth/login", json={"username": "staff", "password": "UserPassw0rd!"}).json()["token"]
    r = client.get("/auth/permissions/current", headers=auth_header(token))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["username"] == "staff"
    assert body["total_permissions"] == 1
    perm = body["permissions"][0]
    assert perm["code"] == "READ.Students"
    assert perm["role_id"] == "WardStaff"
    assert perm["source"] == "GROUP"


def test_permissions_of_user_without_grants_is_404(client, db_session):
    create_user_in_db(db_session, username="bare")
    token = client.post("/auth/token", json={"username": "devadmin", "password": "devpassword"}).json()["token"]

    assert client.get("/auth/permissions/bare", headers=auth_header(token)).status_code == 404
    assert client.get("/auth/permissions/ghost", headers=auth_header(token)).status_code == 404
    assert client.get("/auth/permissions/bare").status_code == 401
