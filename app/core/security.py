"""
security.py

비밀번호 해싱 및 JWT 토큰 생성/검증을 담당하는 보안 유틸리티 모음.

인증(auth) 로직에서 사용하는 저수준(low-level) 보안 기능만 제공하며,
라우터나 비즈니스 로직은 포함하지 않는다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt)
- JWT Access Token 생성 (sub / fullname / roles / iss / aud / exp)
- Access Token 디코딩 및 검증 (서명 / 만료 / issuer / audience)

설계 원칙:
- 시간 기반(exp) 만료는 UTC 기준으로 처리
- 발급 시각(now)을 주입할 수 있도록 하여 만료 동작을 테스트 가능하게 함

관련 파일:
- app.core.config        : JWT 시크릿 키 및 만료 설정
- app.core.deps          : 토큰을 실제로 검증하는 인증 의존성
- app.services.auth      : 로그인 / 개발용 토큰 발급

"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings


# deprecated="auto"로 향후 알고리즘 교체 가능하도록 설정
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # 해시 형식이 잘못된 레코드는 인증 실패로 취급
        return False


"""
Access Token 생성 함수

- subject(sub): 사용자 이름(username)
- roles: 권한 claim 목록 ("READ.USERS" 등)
- fullname: 표시 이름 (선택)
- now: 발급 기준 시각 (기본값: 현재 UTC)

"""

def create_access_token(
    subject: str,
    roles: Iterable[str],
    *,
    full_name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": subject,
        "type": ACCESS_TOKEN_TYPE,
        "roles": list(roles),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if full_name:
        payload["fullname"] = full_name
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


"""
Access Token 디코딩 함수

- 서명 / exp / iss / aud 검증은 python-jose 가 수행
- access 타입이 아니거나 sub 가 없으면 JWTError

"""

def decode_access_token(token: str) -> dict:
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
    )
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise JWTError("Not an access token")
    if not payload.get("sub"):
        raise JWTError("Missing subject")
    return payload
