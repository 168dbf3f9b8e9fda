# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rbac_console.database import models  # noqa: F401  (테이블 등록)
from rbac_console.database.database import Base
from rbac_console.database.db_init import initialize_db

# ===================================================================
#  인메모리 SQLite Fixture
# ===================================================================

@pytest.fixture
def db_engine():
    """테스트마다 새로 만드는 인메모리 SQLite 엔진. 모든 연결이 같은 DB를 공유합니다."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

@pytest.fixture
def seeded_session_factory(db_engine, session_factory):
    """기본 역할, 권한 카탈로그, 바인딩, admin 사용자가 들어 있는 DB의 세션 팩토리."""
    initialize_db(db_engine, session_factory)
    return session_factory

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def seeded_session(seeded_session_factory):
    session = seeded_session_factory()
    yield session
    session.close()
