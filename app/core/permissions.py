"""
permissions.py

권한 문자열(permission code) 정의 및 파싱.

토큰에 담기는 권한 claim은 "{ACTION}.{ENTITY}" 또는
"{ACTION}_{SCOPE}.{ENTITY}" 형태의 문자열이다.
(예: "READ.USERS", "READ_SELF_MANAGED.Students")

라우터는 요구 권한을 "READ.ROLES" 같은 문자열로 선언하며,
require_permissions 가 사용하는 PermissionCode.parse() 는 Action / Entity / Scope 가 아래 레지스트리에
존재하는지 검사한다. 라우터 모듈 import 시점에 파싱되므로
오타가 있으면 애플리케이션이 기동하지 않는다.

주요 기능:
- Action / Entity / Scope 레지스트리 (Enum)
- PermissionCode 파싱 / 문자열 변환
- 쉼표로 구분된 OR 표현식 파싱

관련 파일:
- app.core.deps          : require_permissions 게이트
- scripts/seed_admin.py  : 레지스트리 기반 Action / Entity 시드

"""

from dataclasses import dataclass
from enum import Enum


class PermissionAction(str, Enum):
    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class PermissionScope(str, Enum):
    SELF = "SELF"
    SELF_MANAGED = "SELF_MANAGED"


class PermissionEntity(str, Enum):
    USERS = "USERS"
    ROLES = "ROLES"
    GROUPS = "GROUPS"
    PERMISSIONS = "PERMISSIONS"
    ACTIONS = "ACTIONS"
    ENTITY = "ENTITY"
    AUDITLOGS = "AUDITLOGS"

    # 업무 도메인 엔티티 (권한 부여 대상으로만 등록)
    STUDENTS = "Students"
    DEPARTMENT = "Department"
    TEST_TYPES = "TestTypes"
    ASSESSMENT_BATCH = "AssessmentBatch"
    ASSESSMENT_TESTS = "AssessmentTests"


def _parse_action(raw: str) -> tuple[PermissionAction, PermissionScope | None]:
    # 긴 scope 부터 비교해야 "_SELF_MANAGED" 가 "_SELF" 로 잘리지 않는다
    for scope in sorted(PermissionScope, key=lambda s: len(s.value), reverse=True):
        suffix = f"_{scope.value}"
        if raw.endswith(suffix):
            return PermissionAction(raw[: -len(suffix)]), scope
    return PermissionAction(raw), None


@dataclass(frozen=True)
class PermissionCode:
    action: PermissionAction
    entity: PermissionEntity
    scope: PermissionScope | None = None

    @property
    def action_id(self) -> str:
        if self.scope is None:
            return self.action.value
        return f"{self.action.value}_{self.scope.value}"

    def __str__(self) -> str:
        return f"{self.action_id}.{self.entity.value}"

    @classmethod
    def parse(cls, code: str) -> "PermissionCode":
        """
        "READ.USERS" / "READ_SELF_MANAGED.Students" 형태의 문자열을 파싱한다.
        알 수 없는 action / entity / scope 이면 ValueError.
        """
        action_part, sep, entity_part = code.strip().partition(".")
        if not sep or not action_part or not entity_part:
            raise ValueError(f"Malformed permission code: {code!r}")
        try:
            action, scope = _parse_action(action_part)
        except ValueError:
            raise ValueError(f"Unknown action in permission code: {code!r}") from None
        try:
            entity = PermissionEntity(entity_part)
        except ValueError:
            raise ValueError(f"Unknown entity in permission code: {code!r}") from None
        return cls(action=action, entity=entity, scope=scope)


def parse_expression(expression: str) -> tuple[PermissionCode, ...]:
    """쉼표로 구분된 OR 표현식 ("READ.GROUPS,READ.USERS") 파싱"""
    parts = [p for p in (s.strip() for s in expression.split(",")) if p]
    if not parts:
        raise ValueError("Empty permission expression")
    return tuple(PermissionCode.parse(p) for p in parts)


def builtin_action_ids() -> list[str]:
    """레지스트리에 정의된 모든 action id (scope 조합 포함)"""
    ids = [a.value for a in PermissionAction]
    for action in PermissionAction:
        for scope in PermissionScope:
            ids.append(f"{action.value}_{scope.value}")
    return ids
