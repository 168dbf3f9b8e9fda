from typing import List, Optional, Sequence

from rbac_console.entities import PermissionGroup, RolePermissions
from rbac_console.repositories.http.base import HttpRepositoryBase
from rbac_console.repositories.interfaces import IPermissionRepository


class HttpPermissionRepository(HttpRepositoryBase, IPermissionRepository):
    def list_groups(self) -> List[PermissionGroup]:
        data = self._read(self.client.get("/permissions/groups"), "permission groups")
        return [PermissionGroup.from_dict(item) for item in data or [] if item]

    def get_role_permissions(self, role_id: str) -> Optional[RolePermissions]:
        data = self._read(self.client.get(f"/roles/{role_id}/permissions"), f"permissions of role '{role_id}'", allow_missing=True)
        return RolePermissions.from_dict(data) if data else None

    def replace_role_permissions(self, role_id: str, permission_ids: Sequence[str], remark: str) -> Optional[RolePermissions]:
        body = {"permissionIds": list(permission_ids), "remark": remark}
        result = self.client.put(f"/roles/{role_id}/permissions", json=body)
        if self._is_missing(result):
            return None
        data = self._write(result, f"update permissions of role '{role_id}'")
        if not data:
            return RolePermissions(role_id=role_id, role_name="", granted_permissions=set(permission_ids))
        return RolePermissions.from_dict(data)
