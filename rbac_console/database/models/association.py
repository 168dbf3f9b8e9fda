from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from ..database import Base


class RolePermission(Base):
    """
    역할(Role)과 권한(Permission) 사이의 다대다(many-to-many) 관계를
    연결하는 연관 테이블(Association Table) 모델입니다.
    한 역할의 행 전체가 곧 그 역할의 권한 바인딩이며, 항상 통째로 교체됩니다.
    """
    __tablename__ = 'role_permissions'
    role_id = Column(String, ForeignKey('roles.id'), primary_key=True)
    permission_id = Column(String, ForeignKey('permissions.id'), primary_key=True)

    role = relationship("Role", back_populates="permission_bindings")
    permission = relationship("Permission")
