from .client import AdminApiClient
from .envelope import ApiError, normalize_envelope
from .http_user_repository import HttpUserRepository
from .http_role_repository import HttpRoleRepository
from .http_permission_repository import HttpPermissionRepository

__all__ = [
    "AdminApiClient", "ApiError", "normalize_envelope",
    "HttpUserRepository", "HttpRoleRepository", "HttpPermissionRepository",
]
