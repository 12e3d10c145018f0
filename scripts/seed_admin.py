"""

초기 권한 레지스트리 및 관리자 계정 생성 스크립트.

- 서버 최초 세팅 시 실행하는 용도 (여러 번 실행해도 안전)
- 내장 Action / Entity 레지스트리를 등록
- 모든 기본 권한(READ/CREATE/UPDATE/DELETE x 모든 Entity)을 가진
  Administrator 역할 생성
- .env 에 정의된 SEED_ADMIN_* 환경 변수로 관리자 계정 생성 후 역할 할당

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.seed_admin

"""

import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select

from app.core.permissions import PermissionAction, PermissionEntity, builtin_action_ids
from app.core.security import get_password_hash
from app.db.session import SessionLocal
from app.models import Action, Entity, Role, RoleUser, User, UserStatus
from app.services.permissions import get_permission, permission_id_for, create_permission


ADMIN_ROLE_ID = "Administrator"

# 엔티티별 기본 보안 등급
ENTITY_LEVELS = {
    PermissionEntity.USERS: 4,
    PermissionEntity.ROLES: 5,
    PermissionEntity.GROUPS: 4,
    PermissionEntity.PERMISSIONS: 5,
    PermissionEntity.ACTIONS: 5,
    PermissionEntity.ENTITY: 5,
    PermissionEntity.AUDITLOGS: 5,
}


def seed_registry(db) -> None:
    for action_id in builtin_action_ids():
        if db.get(Action, action_id) is None:
            db.add(Action(id=action_id, name=action_id.replace("_", " ").title(), code=action_id, is_active=True))

    for entity in PermissionEntity:
        if db.get(Entity, entity.value) is None:
            db.add(
                Entity(
                    id=entity.value,
                    name=entity.value,
                    level_security=ENTITY_LEVELS.get(entity, 2),
                    type="SYSTEM" if entity in ENTITY_LEVELS else "BUSINESS",
                )
            )
    db.flush()


def seed_admin_role(db) -> Role:
    role = db.get(Role, ADMIN_ROLE_ID)
    if role is None:
        role = Role(id=ADMIN_ROLE_ID, name=ADMIN_ROLE_ID, is_active=True)
        db.add(role)
        db.flush()

    for action in PermissionAction:
        for entity in PermissionEntity:
            permission_id = permission_id_for(action.value, entity.value, ADMIN_ROLE_ID)
            permission = get_permission(db, permission_id)
            if permission is None:
                permission = create_permission(
                    db, action_id=action.value, entity_id=entity.value, role_id=ADMIN_ROLE_ID
                )
            if permission not in role.permissions:
                role.permissions.append(permission)
    db.flush()
    return role


def main():
    db = SessionLocal()
    try:
        seed_registry(db)
        role = seed_admin_role(db)

        username = os.environ["SEED_ADMIN_USERNAME"]
        password = os.environ["SEED_ADMIN_PASSWORD"]
        full_name = os.environ.get("SEED_ADMIN_FULL_NAME", "Administrator")

        user = db.scalar(
            select(User).where(User.username == username, User.user_status != UserStatus.DELETED.value)
        )
        if user is None:
            user = User(
                username=username,
                password_hash=get_password_hash(password),
                full_name=full_name,
                level_security=5,
                user_status=UserStatus.ACTIVE.value,
            )
            db.add(user)
            db.flush()
            print(f"Admin user created: {username}")
        else:
            print(f"Admin user already exists: {username}")

        if db.get(RoleUser, (user.id, role.id)) is None:
            db.add(RoleUser(user_id=user.id, role_id=role.id))

        db.commit()
        print("Seed complete.")

    finally:
        db.close()


if __name__ == "__main__":
    main()
