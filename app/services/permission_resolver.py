"""
services/permission_resolver.py

유효 권한(Effective Permission) 계산 서비스.

사용자가 어떤 경로로든 보유한 권한 목록을 계산한다.
저장 프로시저에 위임하지 않고 이 모듈 안에서 명시적인 쿼리로 계산하며,
결과는 캐시하지 않는다 (호출할 때마다 다시 계산).

계산 순서:
1. 직접 할당 역할   : role_users 에서 user_id 로 조회
2. 그룹 경유 역할   : 사용자 그룹이 활성 상태이고 활성 시간대 안일 때만 group_roles 조회
3. 비활성 역할 제외
4. 역할에 연결된 권한 : role_permissions(N:M) + permissions.role_id 로 지정된 권한의 합집합
5. 비활성 권한 / 비활성 action / 시간대 밖 권한 제외

결과 규칙:
- permission_id 기준 중복 제거
- 직접 할당 역할로 부여된 권한이 하나라도 있으면 source = "USER", 아니면 "GROUP"
- (action_id, entity_id, permission_id) 순으로 정렬

관련 파일:
- app.services.auth       : 로그인 시 토큰 claim 생성
- app.routers.auth        : 권한 조회 API

"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import PermissionResolutionError
from app.models import (
    Action,
    Group,
    GroupRole,
    Permission,
    Role,
    RoleUser,
    TimeActive,
    User,
    UserStatus,
    role_permissions,
)

logger = logging.getLogger(__name__)

SOURCE_USER = "USER"
SOURCE_GROUP = "GROUP"


@dataclass(frozen=True)
class EffectivePermission:
    permission_id: str
    permission_name: str
    action_id: str
    entity_id: str
    role_id: str
    source: str

    @property
    def code(self) -> str:
        return f"{self.action_id}.{self.entity_id}"

    def to_dict(self) -> dict:
        return {
            "permission_id": self.permission_id,
            "permission_name": self.permission_name,
            "action_id": self.action_id,
            "entity_id": self.entity_id,
            "role_id": self.role_id,
            "source": self.source,
            "code": self.code,
        }


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite 는 tzinfo 를 저장하지 않으므로 naive 값은 UTC 로 간주
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_window_open(window: TimeActive | None, now: datetime) -> bool:
    if window is None:
        return True
    start = _as_utc(window.start_time)
    end = _as_utc(window.end_time)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def _load_windows(db: Session, ids: set[str]) -> dict[str, TimeActive]:
    if not ids:
        return {}
    return {w.id: w for w in db.scalars(select(TimeActive).where(TimeActive.id.in_(ids)))}


def _window_ok(window_id: str | None, windows: dict[str, TimeActive], now: datetime) -> bool:
    if window_id is None:
        return True
    # 존재하지 않는 시간대를 참조하면 유효하지 않은 것으로 취급
    window = windows.get(window_id)
    return window is not None and is_window_open(window, now)


def _group_role_ids(db: Session, user: User, now: datetime) -> set[str]:
    if not user.group_id:
        return set()
    group = db.get(Group, user.group_id)
    if group is None or not group.is_active:
        return set()
    windows = _load_windows(db, {group.time_active_id} if group.time_active_id else set())
    if not _window_ok(group.time_active_id, windows, now):
        return set()
    return set(db.scalars(select(GroupRole.role_id).where(GroupRole.group_id == group.id)))


def _compute(db: Session, user: User, now: datetime) -> list[EffectivePermission]:
    direct = set(db.scalars(select(RoleUser.role_id).where(RoleUser.user_id == user.id)))
    via_group = _group_role_ids(db, user, now)

    candidate_roles = direct | via_group
    if not candidate_roles:
        return []

    active_roles = set(
        db.scalars(select(Role.id).where(Role.id.in_(candidate_roles), Role.is_active.is_(True)))
    )
    if not active_roles:
        return []

    # (Permission, 부여한 role_id) 쌍 수집
    grants: list[tuple[Permission, str]] = []

    linked = db.execute(
        select(Permission, role_permissions.c.role_id)
        .join(role_permissions, role_permissions.c.permission_id == Permission.id)
        .where(role_permissions.c.role_id.in_(active_roles))
    ).all()
    grants.extend((perm, role_id) for perm, role_id in linked)

    scoped = db.scalars(select(Permission).where(Permission.role_id.in_(active_roles))).all()
    grants.extend((perm, perm.role_id) for perm in scoped)

    if not grants:
        return []

    active_actions = set(
        db.scalars(
            select(Action.id).where(
                Action.id.in_({p.action_id for p, _ in grants}),
                Action.is_active.is_(True),
            )
        )
    )
    windows = _load_windows(db, {p.time_active_id for p, _ in grants if p.time_active_id})

    merged: dict[str, tuple[Permission, str, bool]] = {}
    for perm, role_id in grants:
        if not perm.is_active or perm.action_id not in active_actions:
            continue
        if not _window_ok(perm.time_active_id, windows, now):
            continue

        is_direct = role_id in direct
        current = merged.get(perm.id)
        if current is None or (is_direct and not current[2]):
            merged[perm.id] = (perm, role_id, is_direct)

    result = [
        EffectivePermission(
            permission_id=perm.id,
            permission_name=perm.name,
            action_id=perm.action_id,
            entity_id=perm.entity_id,
            role_id=role_id,
            source=SOURCE_USER if is_direct else SOURCE_GROUP,
        )
        for perm, role_id, is_direct in merged.values()
    ]
    result.sort(key=lambda p: (p.action_id, p.entity_id, p.permission_id))
    return result


"""
사용자 id 기준 유효 권한 계산

- 존재하지 않거나 Soft Delete 된 사용자는 빈 목록
- DB 오류는 PermissionResolutionError 로 변환 (재시도 없음)
- now 를 지정하면 해당 시각 기준으로 시간대를 판정

"""

def resolve_effective_permissions(
    db: Session, user_id: uuid.UUID, now: datetime | None = None
) -> list[EffectivePermission]:
    now = _as_utc(now) or datetime.now(timezone.utc)
    try:
        user = db.get(User, user_id)
        if user is None or user.user_status == UserStatus.DELETED:
            return []
        return _compute(db, user, now)
    except SQLAlchemyError as e:
        logger.error("Failed to resolve permissions for user %s: %s", user_id, type(e).__name__)
        raise PermissionResolutionError("Failed to resolve effective permissions") from e


def resolve_effective_permissions_by_username(
    db: Session, username: str, now: datetime | None = None
) -> list[EffectivePermission]:
    try:
        user_id = db.scalar(
            select(User.id).where(
                User.username == username,
                User.user_status != UserStatus.DELETED.value,
            )
        )
    except SQLAlchemyError as e:
        logger.error("Failed to look up user %s: %s", username, type(e).__name__)
        raise PermissionResolutionError("Failed to resolve effective permissions") from e
    if user_id is None:
        return []
    return resolve_effective_permissions(db, user_id, now=now)


def permission_claims(permissions: list[EffectivePermission]) -> list[str]:
    """토큰 roles claim 으로 사용할 "{action_id}.{entity_id}" 문자열 (중복 제거, 정렬)"""
    return sorted({p.code for p in permissions})
