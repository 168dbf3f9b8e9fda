from .user import IUserRepository
from .role import IRoleRepository
from .permission import IPermissionRepository

__all__ = ["IUserRepository", "IRoleRepository", "IPermissionRepository"]
