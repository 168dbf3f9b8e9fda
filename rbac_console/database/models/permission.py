from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class PermissionGroup(Base):
    """
    화면에 함께 표시되는 권한들의 묶음입니다. (예: '데이터베이스 관리 권한')
    카탈로그는 읽기 전용 참조 데이터로, db_init에서만 채워집니다.
    """
    __tablename__ = "permission_groups"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    permissions = relationship("Permission", back_populates="group", order_by="Permission.position")


class Permission(Base):
    """부여 가능한 단일 권한. code는 'database:view' 형식의 고유 식별자입니다."""
    __tablename__ = "permissions"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=True)
    group_id = Column(String, ForeignKey("permission_groups.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    group = relationship("PermissionGroup", back_populates="permissions")
