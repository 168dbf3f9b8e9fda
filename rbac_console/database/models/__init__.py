from .user import User
from .role import Role
from .permission import Permission, PermissionGroup
from .association import RolePermission

__all__ = ["User", "Role", "Permission", "PermissionGroup", "RolePermission"]
