from typing import Any, Dict, List, Optional

from sqlalchemy import func

from rbac_console.database import models
from rbac_console.entities import Role
from rbac_console.repositories.interfaces import IRoleRepository
from rbac_console.repositories.sqlalchemy.base import SqlalchemyRepositoryBase

UPDATABLE_FIELDS = ("name", "description", "permission_level_label")


class SqlalchemyRoleRepository(SqlalchemyRepositoryBase, IRoleRepository):
    def create(self, role: Role) -> Role:
        with self._writing(f"create role '{role.name}'"):
            role_model = models.Role(
                name=role.name,
                description=role.description,
                permission_level_label=role.permission_level_label,
            )
            self.db.add(role_model)
            self.db.commit()
            self.db.refresh(role_model)
            return self._to_entity(role_model, self._count_users(role_model.name))

    def find_by_id(self, role_id: str) -> Optional[Role]:
        with self._reading(f"role '{role_id}'"):
            role_model = self._get(role_id)
            if not role_model:
                return None
            return self._to_entity(role_model, self._count_users(role_model.name))

    def find_by_name(self, name: str) -> Optional[Role]:
        with self._reading(f"role '{name}'"):
            role_model = self.db.query(models.Role).filter(models.Role.name == name).first()
            if not role_model:
                return None
            return self._to_entity(role_model, self._count_users(role_model.name))

    def list_all(self) -> List[Role]:
        with self._reading("roles"):
            # users.role은 역할 이름을 가리키므로 이름 기준으로 외부 조인하여 사용자 수를 계산
            rows = (
                self.db.query(models.Role, func.count(models.User.id))
                .outerjoin(models.User, models.User.role == models.Role.name)
                .group_by(models.Role.id)
                .order_by(models.Role.name.asc())
                .all()
            )
            return [self._to_entity(role_model, user_count) for role_model, user_count in rows]

    def update(self, role_id: str, changes: Dict[str, Any]) -> Optional[Role]:
        with self._writing(f"update role '{role_id}'"):
            role_model = self._get(role_id)
            if not role_model:
                return None
            for field_name in UPDATABLE_FIELDS:
                if field_name in changes:
                    setattr(role_model, field_name, changes[field_name])
            self.db.commit()
            self.db.refresh(role_model)
            return self._to_entity(role_model, self._count_users(role_model.name))

    def delete(self, role_id: str) -> bool:
        with self._writing(f"delete role '{role_id}'"):
            role_model = self._get(role_id)
            if role_model:
                self.db.delete(role_model)  # permission_bindings는 cascade로 함께 삭제
                self.db.commit()
                return True
            return False

    def _get(self, role_id: str) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(models.Role.id == role_id).first()

    def _count_users(self, role_name: str) -> int:
        return self.db.query(models.User).filter(models.User.role == role_name).count()

    @staticmethod
    def _to_entity(role_model: models.Role, user_count: int) -> Role:
        return Role(
            id=role_model.id,
            name=role_model.name,
            description=role_model.description,
            permission_level_label=role_model.permission_level_label,
            user_count=user_count,
        )
