import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from ..database import Base


def _new_role_id() -> str:
    return f"role-{uuid.uuid4().hex[:8]}"


class Role(Base):
    """
    사용자에게 부여할 수 있는 권한의 집합을 정의합니다.
    (예: 'admin', 'operator', 'analyst', 'guest').
    사용자 수(userCount)는 컬럼이 아니라 users.role 기준으로 조회 시 계산합니다.
    """
    __tablename__ = "roles"
    id = Column(String, primary_key=True, default=_new_role_id)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    permission_level_label = Column(String, nullable=False, default="")

    permission_bindings = relationship("RolePermission", back_populates="role", cascade="all, delete-orphan")
