"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

.env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
애플리케이션 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT 서명 시크릿 / 발급자(issuer) / 대상(audience) / 만료 정책
- 개발용 토큰 발급기(dev issuer) 계정
- CORS 허용 도메인 목록
- 로그 레벨

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- 로컬 / 테스트 / 운영 환경을 .env로 분리하여 관리

관련 파일:
- app.main               : CORS / 로깅 초기화 시 설정 사용
- app.core.security      : JWT 시크릿 / 만료 설정 사용
- app.db.session         : DATABASE_URL 사용

"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    JWT_ISSUER: str = "health-admin-api"
    JWT_AUDIENCE: str = "health-admin-clients"

    # 개발용 토큰 발급기
    # - 고정 계정 1개만 검증하며 DB를 조회하지 않음
    # - 운영 환경에서는 DEV_LOGIN_ENABLED=False 권장
    DEV_LOGIN_ENABLED: bool = True
    DEV_LOGIN_USERNAME: str = "admin"
    DEV_LOGIN_PASSWORD: str = "admin"

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    LOG_LEVEL: str = "INFO"


settings = Settings()
