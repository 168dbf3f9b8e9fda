from typing import Any, Dict, List, Optional

from rbac_console.entities import Role
from rbac_console.repositories.http.base import HttpRepositoryBase
from rbac_console.repositories.interfaces import IRoleRepository
from rbac_console.services.exceptions import RoleInUseError

WIRE_FIELDS = {"name": "name", "description": "description", "permission_level_label": "permissions"}


class HttpRoleRepository(HttpRepositoryBase, IRoleRepository):
    def create(self, role: Role) -> Role:
        data = self._write(self.client.post("/roles", json=role.to_dict()), f"create role '{role.name}'")
        return Role.from_dict(data) if data else role

    def find_by_id(self, role_id: str) -> Optional[Role]:
        data = self._read(self.client.get(f"/roles/{role_id}"), f"role '{role_id}'", allow_missing=True)
        return Role.from_dict(data) if data else None

    def find_by_name(self, name: str) -> Optional[Role]:
        return next((r for r in self.list_all() if r.name == name), None)

    def list_all(self) -> List[Role]:
        data = self._read(self.client.get("/roles"), "roles")
        return [Role.from_dict(item) for item in data or [] if item]

    def update(self, role_id: str, changes: Dict[str, Any]) -> Optional[Role]:
        body = {wire_name: changes[field_name] for field_name, wire_name in WIRE_FIELDS.items() if field_name in changes}
        result = self.client.put(f"/roles/{role_id}", json=body)
        if self._is_missing(result):
            return None
        data = self._write(result, f"update role '{role_id}'")
        return Role.from_dict(data) if data else self.find_by_id(role_id)

    def delete(self, role_id: str) -> bool:
        result = self.client.delete(f"/roles/{role_id}")
        if self._is_missing(result):
            return False
        self._write(result, f"delete role '{role_id}'", precondition_error=RoleInUseError)
        return True
