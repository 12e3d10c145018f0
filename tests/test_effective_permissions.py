"""
유효 권한 계산 테스트.
- 직접 할당 역할 + 그룹 경유 역할의 합집합
- 비활성 역할 / 그룹 / 권한 / action, 시간대 밖 권한 제외
- 캐시 없이 매 호출마다 다시 계산
"""

import uuid
from datetime import timedelta

from sqlalchemy import delete

from app.models import GroupRole, Permission, RoleUser, UserStatus
from app.services.permission_resolver import (
    SOURCE_GROUP,
    SOURCE_USER,
    permission_claims,
    resolve_effective_permissions,
    resolve_effective_permissions_by_username,
)
from tests.helpers import (
    assign_role,
    create_action,
    create_group,
    create_role,
    create_time_window,
    create_user_in_db,
    grant,
    link_group_role,
    utcnow,
)


def _codes(perms):
    return [p.code for p in perms]


def test_group_role_grants_permission_until_removed(db_session):
    g1 = create_group(db_session, "g1")
    u1 = create_user_in_db(db_session, username="u1", group_id=g1.id)
    r1 = create_role(db_session, "r1")
    grant(db_session, r1, "READ", "Students")
    link_group_role(db_session, g1, r1)

    perms = resolve_effective_permissions(db_session, u1.id)
    assert _codes(perms) == ["READ.Students"]
    assert perms[0].role_id == "r1"
    assert perms[0].source == SOURCE_GROUP

    db_session.execute(delete(GroupRole).where(GroupRole.group_id == "g1"))
    db_session.commit()

    # 다음 호출에 바로 반영
    assert resolve_effective_permissions(db_session, u1.id) == []


def test_direct_and_group_roles_are_merged(db_session):
    group = create_group(db_session, "Ward")
    user = create_user_in_db(db_session, username="merged", group_id=group.id)

    direct = create_role(db_session, "Direct")
    grant(db_session, direct, "UPDATE", "Students")
    assign_role(db_session, user, direct)

    via_group = create_role(db_session, "ViaGroup")
    grant(db_session, via_group, "READ", "Department")
    link_group_role(db_session, group, via_group)

    perms = resolve_effective_permissions(db_session, user.id)
    by_code = {p.code: p for p in perms}
    assert set(by_code) == {"UPDATE.Students", "READ.Department"}
    assert by_code["UPDATE.Students"].source == SOURCE_USER
    assert by_code["READ.Department"].source == SOURCE_GROUP


def test_results_are_ordered_and_claims_unique(db_session):
    user = create_user_in_db(db_session, username="ordered")
    a = create_role(db_session, "A")
    b = create_role(db_session, "B")
    grant(db_session, a, "UPDATE", "Students")
    grant(db_session, a, "READ", "TestTypes")
    grant(db_session, b, "READ", "Students")
    # 같은 코드가 다른 역할에서 다른 permission_id 로 부여됨
    grant(db_session, b, "READ", "TestTypes")
    assign_role(db_session, user, a)
    assign_role(db_session, user, b)

    perms = resolve_effective_permissions(db_session, user.id)
    keys = [(p.action_id, p.entity_id, p.permission_id) for p in perms]
    assert keys == sorted(keys)
    assert len(perms) == 4

    assert permission_claims(perms) == ["READ.Students", "READ.TestTypes", "UPDATE.Students"]


def test_same_permission_through_user_and_group_is_reported_once_as_user(db_session):
    group = create_group(db_session, "Both")
    user = create_user_in_db(db_session, username="both", group_id=group.id)
    role = create_role(db_session, "Shared")
    grant(db_session, role, "READ", "Students")
    assign_role(db_session, user, role)
    link_group_role(db_session, group, role)

    perms = resolve_effective_permissions(db_session, user.id)
    assert len(perms) == 1
    assert perms[0].source == SOURCE_USER


def test_inactive_role_group_and_permission_are_excluded(db_session):
    inactive_group = create_group(db_session, "Closed", is_active=False)
    user = create_user_in_db(db_session, username="filtered", group_id=inactive_group.id)

    group_role = create_role(db_session, "GroupOnly")
    grant(db_session, group_role, "READ", "Department")
    link_group_role(db_session, inactive_group, group_role)

    inactive_role = create_role(db_session, "Retired", is_active=False)
    grant(db_session, inactive_role, "DELETE", "Students")
    assign_role(db_session, user, inactive_role)

    active_role = create_role(db_session, "Active")
    grant(db_session, active_role, "CREATE", "Students", is_active=False)
    grant(db_session, active_role, "READ", "Students")
    assign_role(db_session, user, active_role)

    assert _codes(resolve_effective_permissions(db_session, user.id)) == ["READ.Students"]


def test_inactive_action_is_excluded(db_session):
    create_action(db_session, "EXPORT", is_active=False)
    user = create_user_in_db(db_session, username="exporter")
    role = create_role(db_session, "Exporter")
    grant(db_session, role, "EXPORT", "Students")
    grant(db_session, role, "READ", "Students")
    assign_role(db_session, user, role)

    assert _codes(resolve_effective_permissions(db_session, user.id)) == ["READ.Students"]


def test_time_windows_gate_permissions_and_groups(db_session):
    now = utcnow()
    create_time_window(db_session, "open", start=now - timedelta(hours=1), end=now + timedelta(hours=1))
    create_time_window(db_session, "future", start=now + timedelta(days=1), end=None)
    create_time_window(db_session, "past", start=None, end=now - timedelta(days=1))

    closed_group = create_group(db_session, "NightShift", time_active_id="past")
    user = create_user_in_db(db_session, username="shift", group_id=closed_group.id)

    group_role = create_role(db_session, "Night")
    grant(db_session, group_role, "READ", "Department")
    link_group_role(db_session, closed_group, group_role)

    role = create_role(db_session, "Timed")
    grant(db_session, role, "READ", "Students", time_active_id="open")
    grant(db_session, role, "UPDATE", "Students", time_active_id="future")
    grant(db_session, role, "DELETE", "Students", time_active_id="past")
    assign_role(db_session, user, role)

    assert _codes(resolve_effective_permissions(db_session, user.id, now=now)) == ["READ.Students"]

    # 기준 시각을 옮기면 결과도 달라짐
    later = now + timedelta(days=2)
    assert _codes(resolve_effective_permissions(db_session, user.id, now=later)) == ["UPDATE.Students"]


def test_permission_scoped_to_role_is_included(db_session):
    user = create_user_in_db(db_session, username="scoped")
    role = create_role(db_session, "Scoped")
    grant(db_session, role, "READ", "Students")
    create_action(db_session, "UPDATE")
    # role_permissions 연결 없이 permissions.role_id 로만 지정
    db_session.add(
        Permission(
            id="UPDATE_Students_Scoped",
            name="Update Students",
            action_id="UPDATE",
            entity_id="Students",
            role_id="Scoped",
        )
    )
    db_session.commit()
    assign_role(db_session, user, role)

    ids = [p.permission_id for p in resolve_effective_permissions(db_session, user.id)]
    assert "UPDATE_Students_Scoped" in ids
    assert "READ_Students_Scoped" in ids


def test_unknown_and_deleted_users_resolve_to_nothing(db_session):
    assert resolve_effective_permissions(db_session, uuid.uuid4()) == []

    user = create_user_in_db(db_session, username="gone", status=UserStatus.DELETED)
    role = create_role(db_session, "Any")
    grant(db_session, role, "READ", "Students")
    assign_role(db_session, user, role)

    assert resolve_effective_permissions(db_session, user.id) == []
    assert resolve_effective_permissions_by_username(db_session, "gone") == []
    assert resolve_effective_permissions_by_username(db_session, "nobody") == []


def test_direct_assignment_removal_is_seen_immediately(db_session):
    user = create_user_in_db(db_session, username="revoked")
    role = create_role(db_session, "Temp")
    grant(db_session, role, "READ", "Students")
    assign_role(db_session, user, role)
    assert resolve_effective_permissions_by_username(db_session, "revoked")

    db_session.execute(delete(RoleUser).where(RoleUser.user_id == user.id))
    db_session.commit()
    assert resolve_effective_permissions_by_username(db_session, "revoked") == []
