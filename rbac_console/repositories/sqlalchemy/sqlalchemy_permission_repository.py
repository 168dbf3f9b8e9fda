import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import selectinload

from rbac_console.database import models
from rbac_console.entities import Permission, PermissionGroup, RolePermissions
from rbac_console.repositories.interfaces import IPermissionRepository
from rbac_console.repositories.sqlalchemy.base import SqlalchemyRepositoryBase

logger = logging.getLogger(__name__)


class SqlalchemyPermissionRepository(SqlalchemyRepositoryBase, IPermissionRepository):
    def list_groups(self) -> List[PermissionGroup]:
        with self._reading("permission groups"):
            groups = (
                self.db.query(models.PermissionGroup)
                .options(selectinload(models.PermissionGroup.permissions))
                .order_by(models.PermissionGroup.position.asc(), models.PermissionGroup.id.asc())
                .all()
            )
            return [
                PermissionGroup(
                    id=g.id,
                    name=g.name,
                    description=g.description,
                    permissions=[
                        Permission(id=p.id, name=p.name, code=p.code, description=p.description, group_id=p.group_id)
                        for p in g.permissions
                    ],
                )
                for g in groups
            ]

    def get_role_permissions(self, role_id: str) -> Optional[RolePermissions]:
        with self._reading(f"permissions of role '{role_id}'"):
            role_model = self.db.query(models.Role).filter(models.Role.id == role_id).first()
            if not role_model:
                return None
            return self._to_binding(role_model)

    def replace_role_permissions(self, role_id: str, permission_ids: Sequence[str], remark: str) -> Optional[RolePermissions]:
        with self._writing(f"update permissions of role '{role_id}'"):
            role_model = self.db.query(models.Role).filter(models.Role.id == role_id).first()
            if not role_model:
                return None
            # delete-orphan cascade로 기존 바인딩 삭제와 새 바인딩 삽입이 하나의 트랜잭션에서 처리됨
            role_model.permission_bindings = [
                models.RolePermission(role_id=role_model.id, permission_id=permission_id)
                for permission_id in dict.fromkeys(permission_ids)
            ]
            self.db.commit()
            self.db.refresh(role_model)
            logger.info(f"Role '{role_model.name}' permissions replaced ({len(set(permission_ids))} granted), remark='{remark}'")
            return self._to_binding(role_model)

    def _to_binding(self, role_model: models.Role) -> RolePermissions:
        granted = {binding.permission_id for binding in role_model.permission_bindings}
        return RolePermissions(role_id=role_model.id, role_name=role_model.name, granted_permissions=granted)
