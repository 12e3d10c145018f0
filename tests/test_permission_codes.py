"""
권한 문자열 파싱 / 게이트 선언 검증 테스트.
- 알 수 없는 action / entity / scope 는 라우터 선언 시점에 ValueError
"""

import pytest

from app.core.deps import require_permissions
from app.core.permissions import (
    PermissionAction,
    PermissionCode,
    PermissionEntity,
    PermissionScope,
    builtin_action_ids,
    parse_expression,
)


def test_parse_plain_code():
    code = PermissionCode.parse("READ.USERS")
    assert code.action == PermissionAction.READ
    assert code.entity == PermissionEntity.USERS
    assert code.scope is None
    assert str(code) == "READ.USERS"


def test_parse_scoped_code_keeps_literal_form():
    code = PermissionCode.parse("READ_SELF_MANAGED.Students")
    assert code.action == PermissionAction.READ
    assert code.scope == PermissionScope.SELF_MANAGED
    assert code.entity == PermissionEntity.STUDENTS
    assert str(code) == "READ_SELF_MANAGED.Students"

    assert str(PermissionCode.parse("UPDATE_SELF.AssessmentBatch")) == "UPDATE_SELF.AssessmentBatch"


def test_parse_expression_is_or_list():
    codes = parse_expression("READ.Students, READ_SELF_MANAGED.Students")
    assert [str(c) for c in codes] == ["READ.Students", "READ_SELF_MANAGED.Students"]


@pytest.mark.parametrize(
    "raw",
    ["REED.USERS", "READ.USER", "READ_OTHERS.USERS", "READUSERS", ".USERS", "READ.", ""],
)
def test_unknown_or_malformed_codes_are_rejected(raw):
    with pytest.raises(ValueError):
        parse_expression(raw)


def test_typo_fails_when_gate_is_declared():
    with pytest.raises(ValueError):
        require_permissions("READ.USERS,UPDTE.USERS")


def test_gate_accepts_typed_codes():
    checker = require_permissions(PermissionCode(PermissionAction.DELETE, PermissionEntity.ROLES))
    assert [str(c) for c in checker.required_codes] == ["DELETE.ROLES"]


def test_builtin_action_ids_include_scoped_variants():
    ids = builtin_action_ids()
    assert "READ" in ids
    assert "READ_SELF_MANAGED" in ids
    assert "DELETE_SELF" in ids
