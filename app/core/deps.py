import logging
from dataclasses import dataclass
from typing import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.permissions import PermissionCode, parse_expression
from app.core.security import decode_access_token
from app.db.session import SessionLocal

logger = logging.getLogger(__name__)

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@dataclass(frozen=True)
class Principal:
    """검증된 토큰에서 추출한 호출자 정보"""
    username: str
    full_name: str | None
    permissions: frozenset[str]

    def has_any(self, codes) -> bool:
        return any(str(code) in self.permissions for code in codes)


def get_current_principal(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    if cred is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(cred.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]

    return Principal(
        username=payload["sub"],
        full_name=payload.get("fullname"),
        permissions=frozenset(str(r) for r in roles),
    )


"""
권한 게이트 의존성 생성 함수

- 인자는 PermissionCode 또는 "READ.GROUPS,READ.USERS" 형태의 문자열
- 문자열은 이 함수가 호출되는 시점(라우터 import 시)에 파싱/검증됨
- 요구 권한 중 하나라도 토큰 claim에 있으면 통과 (OR 조건, 정확히 일치)
- 없으면 403 (핸들러 실행 전 차단)

"""

def require_permissions(*required: PermissionCode | str):
    codes: list[PermissionCode] = []
    for item in required:
        if isinstance(item, PermissionCode):
            codes.append(item)
        else:
            codes.extend(parse_expression(item))
    if not codes:
        raise ValueError("require_permissions needs at least one permission code")

    required_codes = tuple(codes)

    def _checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_any(required_codes):
            logger.debug(
                "Rejected %s: requires one of %s",
                principal.username,
                ",".join(str(c) for c in required_codes),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    _checker.required_codes = required_codes
    return _checker
