# tests/services/test_permission_services.py
import pytest
from unittest.mock import MagicMock

from rbac_console.entities import Permission, PermissionGroup, RolePermissions
from rbac_console.repositories.interfaces import IPermissionRepository
from rbac_console.services.exceptions import *
from rbac_console.services.permission_catalog import PermissionCatalog
from rbac_console.services.role_permission_service import RolePermissionService

CATALOG = [
    PermissionGroup(id="database", name="Database", permissions=[
        Permission(id="db_view", name="View databases", code="database:view", group_id="database"),
        Permission(id="db_create", name="Create databases", code="database:create", group_id="database"),
    ]),
    PermissionGroup(id="storage", name="Storage", permissions=[
        Permission(id="storage_view", name="View storage", code="storage:view", group_id="storage"),
    ]),
]

@pytest.fixture
def mock_permission_repo() -> MagicMock:
    """IPermissionRepository에 대한 모의 객체를 생성합니다."""
    repo = MagicMock(spec=IPermissionRepository)
    repo.list_groups.return_value = CATALOG
    return repo

@pytest.fixture
def catalog(mock_permission_repo: MagicMock) -> PermissionCatalog:
    return PermissionCatalog(mock_permission_repo)

@pytest.fixture
def binding_service(mock_permission_repo: MagicMock, catalog: PermissionCatalog) -> RolePermissionService:
    return RolePermissionService(mock_permission_repo, catalog)

# ===================================================================
#  권한 카탈로그(Permission Catalog) 테스트
# ===================================================================
class TestPermissionCatalog:
    def test_groups_are_fetched_once(self, catalog: PermissionCatalog, mock_permission_repo: MagicMock):
        """카탈로그는 처음 한 번만 조회하고 이후에는 캐시를 사용하는지 테스트합니다."""
        first = catalog.list_permission_groups()
        second = catalog.list_permission_groups()

        assert [g.id for g in first] == ["database", "storage"]
        assert first == second
        mock_permission_repo.list_groups.assert_called_once()

    def test_failed_fetch_is_not_cached(self, catalog: PermissionCatalog, mock_permission_repo: MagicMock):
        mock_permission_repo.list_groups.side_effect = [DataUnavailableError("down"), CATALOG]

        with pytest.raises(DataUnavailableError):
            catalog.list_permission_groups()
        assert len(catalog.list_permission_groups()) == 2

    def test_refresh_refetches(self, catalog: PermissionCatalog, mock_permission_repo: MagicMock):
        catalog.list_permission_groups()
        catalog.refresh()
        catalog.list_permission_groups()

        assert mock_permission_repo.list_groups.call_count == 2

    def test_lookups(self, catalog: PermissionCatalog):
        assert [p.id for p in catalog.list_permissions()] == ["db_view", "db_create", "storage_view"]
        assert catalog.permission_ids() == {"db_view", "db_create", "storage_view"}
        assert catalog.find_by_code("storage:view").id == "storage_view"
        assert catalog.find_by_id("db_create").code == "database:create"
        assert catalog.find_by_code("nope:nope") is None

# ===================================================================
#  역할 권한 바인딩(Role-Permission Binding) 테스트
# ===================================================================
class TestRolePermissionService:
    def test_get_binding(self, binding_service: RolePermissionService, mock_permission_repo: MagicMock):
        mock_permission_repo.get_role_permissions.return_value = RolePermissions("role-001", "admin", {"db_view"})

        binding = binding_service.get_binding("role-001")

        assert binding.granted_permissions == {"db_view"}

    def test_get_binding_unknown_role(self, binding_service: RolePermissionService, mock_permission_repo: MagicMock):
        mock_permission_repo.get_role_permissions.return_value = None

        with pytest.raises(RoleNotFoundError):
            binding_service.get_binding("role-404")

    def test_replace_binding_sends_full_sorted_set(self, binding_service: RolePermissionService, mock_permission_repo: MagicMock):
        """교체 요청은 중복이 제거된 전체 집합을 정렬된 목록으로 보내는지 테스트합니다."""
        mock_permission_repo.replace_role_permissions.return_value = RolePermissions(
            "role-001", "admin", {"db_view", "storage_view"}
        )

        binding_service.replace_binding("role-001", ["storage_view", "db_view", "db_view"], "Permission update")

        mock_permission_repo.replace_role_permissions.assert_called_once_with(
            "role-001", ["db_view", "storage_view"], "Permission update"
        )

    def test_replace_binding_rejects_unknown_ids(self, binding_service: RolePermissionService, mock_permission_repo: MagicMock):
        with pytest.raises(ValidationError):
            binding_service.replace_binding("role-001", ["db_view", "root_shell"])
        mock_permission_repo.replace_role_permissions.assert_not_called()

    def test_replace_binding_unknown_role(self, binding_service: RolePermissionService, mock_permission_repo: MagicMock):
        mock_permission_repo.replace_role_permissions.return_value = None

        with pytest.raises(RoleNotFoundError):
            binding_service.replace_binding("role-404", ["db_view"])

    def test_check_permission(self, binding_service: RolePermissionService, mock_permission_repo: MagicMock):
        mock_permission_repo.get_role_permissions.return_value = RolePermissions("role-003", "analyst", {"db_view"})

        granted = binding_service.check_permission("role-003", "database:view")
        denied = binding_service.check_permission("role-003", "database:create")

        assert granted.has_permission is True
        assert denied.has_permission is False
        assert denied.to_dict() == {"roleId": "role-003", "permissionCode": "database:create", "hasPermission": False}

    def test_check_permission_unknown_code(self, binding_service: RolePermissionService):
        with pytest.raises(ValidationError):
            binding_service.check_permission("role-003", "database:drop_everything")
