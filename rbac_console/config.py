"""환경 변수 기반 애플리케이션 설정."""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """RBAC_ 접두사가 붙은 환경 변수(또는 .env)에서 읽어 오는 설정."""

    # Database
    DATABASE_URL: str = "sqlite:///rbac_console.db"

    # Admin API (HTTP 백엔드)
    API_BASE_URL: str = "http://localhost:8080"
    API_PREFIX: str = "/dfm/security"
    API_TIMEOUT_SECONDS: float = 10.0
    API_TOKEN: Optional[str] = None

    # 권한 편집
    SAVED_ACK_SECONDS: float = 2.0
    PERMISSION_UPDATE_REMARK: str = "Permission update"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Server
    SERVER_PORT: int = 8000

    # 초기 관리자 계정 seed
    ADMIN_PASSWORD: str = "admin"

    class Config:
        env_prefix = "RBAC_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
