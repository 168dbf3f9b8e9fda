import logging
from typing import Iterable

from rbac_console.entities import PermissionCheckResult, RolePermissions
from rbac_console.repositories.interfaces import IPermissionRepository
from rbac_console.services.exceptions import RoleNotFoundError, ValidationError
from rbac_console.services.permission_catalog import PermissionCatalog

logger = logging.getLogger(__name__)


class RolePermissionService:
    """역할별 권한 바인딩의 조회와 전체 교체(full replace)를 담당합니다."""

    def __init__(self, permission_repo: IPermissionRepository, catalog: PermissionCatalog):
        """
        Args:
            permission_repo: 바인딩을 읽고 쓰는 리포지토리.
            catalog: 교체 요청의 권한 ID를 검증할 권한 카탈로그.
        """
        self.permission_repo = permission_repo
        self.catalog = catalog

    def get_binding(self, role_id: str) -> RolePermissions:
        """
        역할에 현재 부여된 권한 바인딩을 조회합니다.

        Raises:
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
            DataUnavailableError: 조회에 실패했을 때.
        """
        binding = self.permission_repo.get_role_permissions(role_id)
        if binding is None:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        return binding

    def replace_binding(self, role_id: str, permission_ids: Iterable[str], remark: str = "") -> RolePermissions:
        """
        역할의 권한 바인딩을 주어진 집합으로 통째로 교체합니다. 차이(diff)만 보내지 않습니다.

        Raises:
            ValidationError: 카탈로그에 없는 권한 ID가 포함되어 있을 때.
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
            UpdateFailedError: 쓰기 호출이 실패했을 때.
        """
        requested = sorted(set(permission_ids))
        unknown = set(requested) - self.catalog.permission_ids()
        if unknown:
            raise ValidationError(f"Unknown permission ids: {', '.join(sorted(unknown))}")

        binding = self.permission_repo.replace_role_permissions(role_id, requested, remark)
        if binding is None:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        logger.info(f"Permissions of role '{role_id}' replaced with {len(requested)} permission(s)")
        return binding

    def check_permission(self, role_id: str, permission_code: str) -> PermissionCheckResult:
        """
        역할이 특정 권한 코드(예: 'database:view')를 가지고 있는지 확인합니다.

        Raises:
            ValidationError: 카탈로그에 없는 권한 코드일 때.
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
        """
        permission = self.catalog.find_by_code(permission_code)
        if not permission:
            raise ValidationError(f"Unknown permission code '{permission_code}'.")
        binding = self.get_binding(role_id)
        return PermissionCheckResult(
            role_id=role_id,
            permission_code=permission_code,
            has_permission=permission.id in binding.granted_permissions,
        )
