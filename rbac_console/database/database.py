from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from rbac_console.config import settings

# 데이터베이스 연결 문자열은 설정(RBAC_DATABASE_URL)에서 읽어 옵니다.
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# connect_args는 SQLite에서만 필요합니다. (thread-safe 설정)
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)

# autocommit=False, autoflush=False로 설정하여, 명시적으로 commit을 호출해야 DB에 반영됩니다.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()
