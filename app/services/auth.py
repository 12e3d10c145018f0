"""
services/auth.py

토큰 발급 및 계정 인증 비즈니스 로직.

주요 기능:
- 개발용 토큰 발급 (설정된 고정 계정 1개만 검증, DB 미조회)
- 실제 로그인 (bcrypt 검증 → 로그인 이력 기록 → 유효 권한 계산 → 토큰 발급)
- 최초 로그인 비밀번호 변경 (PENDING → ACTIVE)

설계 원칙:
- FastAPI 에 의존하지 않으며 실패는 app.core.exceptions 예외로 표현
- db.commit() 은 라우터에서 수행

관련 파일:
- app.core.security                 : 해싱 / 토큰 생성
- app.services.permission_resolver  : 토큰 claim 계산
- app.routers.auth                  : 인증 API

"""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models import LoginHistory, User, UserStatus
from app.models.login_history import LOGIN_FAILED, LOGIN_SUCCESS
from app.services.permission_resolver import (
    permission_claims,
    resolve_effective_permissions,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"

DEV_ROLE_CLAIM = "Admin"

# 로그인 가능한 상태 (SUSPENDED / DELETED 는 로그인 불가)
LOGIN_ALLOWED_STATUSES = (UserStatus.ACTIVE.value, UserStatus.PENDING.value)


"""
개발용 토큰 발급

- DEV_LOGIN_USERNAME / DEV_LOGIN_PASSWORD 와 일치할 때만 발급
- roles claim 은 "Admin" 하나, 만료 30분
- 실패 시 null 이 아닌 AuthenticationError(401)

"""

def issue_dev_token(username: str, password: str, now: datetime | None = None) -> str:
    if not settings.DEV_LOGIN_ENABLED:
        raise AuthenticationError(INVALID_CREDENTIALS)

    user_ok = hmac.compare_digest(username.encode(), settings.DEV_LOGIN_USERNAME.encode())
    password_ok = hmac.compare_digest(password.encode(), settings.DEV_LOGIN_PASSWORD.encode())
    if not (user_ok and password_ok):
        logger.warning("Rejected dev token request for %s", username)
        raise AuthenticationError(INVALID_CREDENTIALS)

    logger.info("Issued dev token for %s", username)
    return create_access_token(username, [DEV_ROLE_CLAIM], now=now)


def find_login_user(db: Session, username: str) -> User | None:
    return db.scalar(
        select(User).where(
            User.username == username,
            User.user_status.in_(LOGIN_ALLOWED_STATUSES),
        )
    )


def record_login(
    db: Session,
    user: User,
    *,
    success: bool,
    ip_address: str | None = None,
    mac_device: str | None = None,
    now: datetime | None = None,
) -> LoginHistory:
    entry = LoginHistory(
        user_id=user.id,
        login_time=now or datetime.now(timezone.utc),
        ip_address=ip_address,
        mac_device=mac_device,
        status_login=LOGIN_SUCCESS if success else LOGIN_FAILED,
    )
    db.add(entry)
    return entry


@dataclass
class LoginResult:
    user: User
    token: str | None
    claims: list[str]


"""
실제 로그인

- 사용자 없음 / 정지 / 삭제 → AuthenticationError
- 비밀번호 불일치 → 실패 이력 기록 후 AuthenticationError
  (실패 이력이 남도록 라우터는 예외 시에도 commit)
- PENDING 사용자 → 토큰 없이 반환 (최초 비밀번호 변경 필요)
- 성공 → 성공 이력 기록, 유효 권한을 "{action_id}.{entity_id}" claim 으로 담은 토큰 발급

"""

def login(
    db: Session,
    *,
    username: str,
    password: str,
    ip_address: str | None = None,
    mac_device: str | None = None,
    now: datetime | None = None,
) -> LoginResult:
    user = find_login_user(db, username)
    if user is None:
        logger.info("Login failed for unknown or disabled user %s", username)
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        record_login(db, user, success=False, ip_address=ip_address, mac_device=mac_device, now=now)
        logger.info("Login failed for %s: bad password", username)
        raise AuthenticationError(INVALID_CREDENTIALS)

    if user.user_status == UserStatus.PENDING.value:
        logger.info("Login for %s requires first password change", username)
        return LoginResult(user=user, token=None, claims=[])

    claims = permission_claims(resolve_effective_permissions(db, user.id, now=now))
    token = create_access_token(user.username, claims, full_name=user.full_name, now=now)
    record_login(db, user, success=True, ip_address=ip_address, mac_device=mac_device, now=now)

    logger.info("User %s logged in with %d permission claims", username, len(claims))
    return LoginResult(user=user, token=token, claims=claims)


def first_change_password(
    db: Session,
    *,
    username: str,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> User:
    user = db.scalar(
        select(User).where(
            User.username == username,
            User.user_status == UserStatus.PENDING.value,
        )
    )
    if user is None or not verify_password(current_password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)

    if new_password != confirm_password:
        raise ValidationError("New password and confirmation do not match")
    if new_password == current_password:
        raise ValidationError("New password must differ from the current password")

    user.password_hash = get_password_hash(new_password)
    user.user_status = UserStatus.ACTIVE.value
    user.updated_at = datetime.now(timezone.utc)
    return user
