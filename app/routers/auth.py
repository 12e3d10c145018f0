"""
auth.py

인증(Authentication) 및 권한 조회 API 모음.

주요 기능:
- 개발용 토큰 발급 (고정 계정, roles=["Admin"])
- 실제 로그인 (유효 권한을 claim 으로 담은 토큰 발급)
- 최초 로그인 비밀번호 변경
- 현재 사용자 / 특정 사용자의 유효 권한 조회

설계 원칙:
- Access Token 은 Authorization Header(Bearer)로 전달
- /auth/token, /auth/login, /auth/first-change-password 는 인증 없이 접근 가능
- 권한 조회는 인증된 사용자 누구나 가능

관련 파일:
- app.services.auth                 : 토큰 발급 / 로그인 로직
- app.services.permission_resolver  : 유효 권한 계산
- app.schemas.auth                  : 인증 관련 요청/응답

"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_current_principal, get_db
from app.core.exceptions import AppError, AuthenticationError, database_error
from app.schemas.auth import (
    DevTokenRequest,
    DevTokenResponse,
    FirstChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    UserPermissionsResponse,
)
from app.services import auth as auth_service
from app.services.permission_resolver import resolve_effective_permissions_by_username

router = APIRouter(prefix="/auth", tags=["auth"])


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


"""
개발용 토큰 발급 API

- DB 를 조회하지 않고 설정된 고정 계정만 검증
- 실패 시 401 (null 응답 대신 명시적 거절)

"""

@router.post("/token", response_model=DevTokenResponse)
def issue_token(data: DevTokenRequest):
    token = auth_service.issue_dev_token(data.username, data.password)
    return {"token": token}


"""
로그인 API

- 정지 / 삭제 사용자, 비밀번호 불일치 → 401
- 비밀번호 불일치도 로그인 이력(status_login=0)은 저장
- 최초 비밀번호 변경 대기(PENDING) 사용자는 token = null 로 응답

"""

@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    try:
        result = auth_service.login(
            db,
            username=data.username,
            password=data.password,
            ip_address=client_ip(request),
            mac_device=data.mac_device,
        )
        db.commit()
    except AuthenticationError:
        # 실패 이력 저장
        db.commit()
        raise
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    return {
        "token": result.token,
        "user_name": result.user.username,
        "full_name": result.user.full_name,
        "user_status": result.user.user_status,
    }


"""
최초 로그인 비밀번호 변경 API

- PENDING 상태 사용자만 가능
- 현재 비밀번호 확인, 새 비밀번호 확인 값 일치 필요
- 변경 후 ACTIVE 상태로 전환

"""

@router.post("/first-change-password")
def first_change_password(data: FirstChangePasswordRequest, db: Session = Depends(get_db)):
    try:
        user = auth_service.first_change_password(
            db,
            username=data.username,
            current_password=data.current_password,
            new_password=data.new_password,
            confirm_password=data.confirm_password,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    return {"message": "Password changed", "data": {"user_name": user.username, "user_status": user.user_status}}


def _permissions_response(username: str, perms) -> dict:
    return {
        "username": username,
        "permissions": [p.to_dict() for p in perms],
        "total_permissions": len(perms),
    }


@router.get("/permissions/current", response_model=UserPermissionsResponse)
def current_permissions(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    perms = resolve_effective_permissions_by_username(db, principal.username)
    return _permissions_response(principal.username, perms)


"""
특정 사용자 유효 권한 조회 API

- 사용자가 없거나 권한이 하나도 없으면 404

"""

@router.get("/permissions/{username}", response_model=UserPermissionsResponse)
def user_permissions(
    username: str,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
):
    perms = resolve_effective_permissions_by_username(db, username)
    if not perms:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No permissions found for user")
    return _permissions_response(username, perms)
