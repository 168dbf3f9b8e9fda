import logging
from typing import Any, Dict, List, Optional

from rbac_console.entities import Role
from rbac_console.repositories.interfaces import IRoleRepository
from rbac_console.services.exceptions import (
    RoleCreationError, RoleInUseError, RoleNotFoundError, ValidationError
)
from rbac_console.services.user_service import matches_search

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "permission_level_label")


class RoleService:
    """역할(Role)의 생성, 수정, 삭제를 담당합니다. 사용 중인 역할의 삭제를 막습니다."""

    def __init__(self, role_repo: IRoleRepository):
        self.role_repo = role_repo

    def list_roles(self, search: Optional[str] = None) -> List[Role]:
        """모든 역할의 목록을 조회합니다. search가 주어지면 name, description, id로 거릅니다."""
        roles = self.role_repo.list_all()
        return [r for r in roles if matches_search(search, r.name, r.description, r.id)]

    def get_role(self, role_id: str) -> Role:
        """
        ID로 특정 역할을 조회합니다.

        Raises:
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
        """
        role = self.role_repo.find_by_id(role_id)
        if not role:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        return role

    def create_role(self, name: str, description: str, permission_level_label: str = "") -> Role:
        """
        새로운 역할을 생성합니다. 사용자 수는 0으로 시작합니다.

        Raises:
            ValidationError: 이름이나 설명이 비어 있을 때.
            RoleCreationError: 동일한 이름의 역할이 이미 존재할 때.
        """
        if not name or not description:
            raise ValidationError("Role name and description are required.")
        if self.role_repo.find_by_name(name):
            raise RoleCreationError(f"Role with name '{name}' already exists.")

        draft = Role(name=name, description=description, permission_level_label=permission_level_label or "", user_count=0)
        created_role = self.role_repo.create(draft)
        logger.info(f"Role '{created_role.name}' created")
        return created_role

    def update_role(self, role_id: str, patch: Dict[str, Any]) -> Role:
        """
        역할의 일부 필드를 수정합니다. 이름을 바꿔도 사용자 쪽 역할 이름은 바뀌지 않습니다.

        Raises:
            ValidationError: 알 수 없는 필드, 빈 이름/설명, 다른 역할과 이름이 겹칠 때.
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
        """
        unknown = set(patch) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown role fields: {', '.join(sorted(unknown))}")

        changes = {k: v for k, v in patch.items() if v is not None}
        for required in ("name", "description"):
            if required in changes and not changes[required]:
                raise ValidationError(f"Role {required} must not be empty.")

        role = self.get_role(role_id)
        if not changes:
            return role

        if "name" in changes and changes["name"] != role.name:
            existing = self.role_repo.find_by_name(changes["name"])
            if existing and existing.id != role_id:
                raise ValidationError(f"Role with name '{changes['name']}' already exists.")

        updated_role = self.role_repo.update(role_id, changes)
        if not updated_role:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        logger.info(f"Role '{role_id}' updated: {', '.join(sorted(changes))}")
        return updated_role

    def delete_role(self, role_id: str) -> bool:
        """
        역할을 삭제합니다. 단, 배정된 사용자가 없는(userCount == 0) 역할만 삭제 가능합니다.
        사용자 수는 삭제 직전에 다시 조회한 값을 기준으로 판단합니다.

        Raises:
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
            RoleInUseError: 역할에 사용자가 한 명 이상 배정되어 있을 때.
        """
        role = self.get_role(role_id)
        if role.user_count > 0:
            logger.warning(f"Refusing to delete role '{role.name}': {role.user_count} user(s) assigned")
            raise RoleInUseError(f"Role '{role.name}' is assigned to {role.user_count} user(s).")

        if not self.role_repo.delete(role_id):
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        logger.info(f"Role '{role.name}' deleted")
        return True
