import logging
import time
from typing import Any, Callable, Dict, List, Optional

from rbac_console.config import Settings, settings as default_settings
from rbac_console.entities import (
    Permission, PermissionCheckResult, PermissionGroup, Role, RolePermissions, User
)
from rbac_console.repositories.interfaces import IPermissionRepository, IRoleRepository, IUserRepository
from rbac_console.result import Result
from rbac_console.services.exceptions import RbacError, ValidationError
from rbac_console.services.permission_catalog import PermissionCatalog
from rbac_console.services.role_permission_editor import EditorState, RolePermissionEditor
from rbac_console.services.role_permission_service import RolePermissionService
from rbac_console.services.role_service import RoleService
from rbac_console.services.user_service import UserService

logger = logging.getLogger(__name__)


class RbacAdminConsole:
    """
    사용자/역할/권한 관리 화면이 사용하는 RBAC 관리 코어.

    모든 명령은 예외를 던지는 대신 Result를 반환합니다. 화면은 명령마다 돌아오는 Result로
    성공 여부와 오류 메시지를 표시하므로, 공유된 로딩/오류 플래그가 필요 없습니다.
    예상된 오류(RbacError 계열)만 Result로 바뀌며, 그 밖의 예외는 그대로 전파됩니다.
    """

    def __init__(
        self,
        user_service: UserService,
        role_service: RoleService,
        catalog: PermissionCatalog,
        binding_service: RolePermissionService,
        editor: RolePermissionEditor
    ):
        self.user_service = user_service
        self.role_service = role_service
        self.catalog = catalog
        self.binding_service = binding_service
        self.editor = editor

    @classmethod
    def from_repositories(
        cls,
        user_repo: IUserRepository,
        role_repo: IRoleRepository,
        permission_repo: IPermissionRepository,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic
    ) -> "RbacAdminConsole":
        """리포지토리 세 개로 서비스와 편집기를 조립합니다."""
        settings = settings or default_settings
        catalog = PermissionCatalog(permission_repo)
        binding_service = RolePermissionService(permission_repo, catalog)
        editor = RolePermissionEditor(
            binding_service,
            saved_ack_seconds=settings.SAVED_ACK_SECONDS,
            default_remark=settings.PERMISSION_UPDATE_REMARK,
            clock=clock,
        )
        return cls(
            user_service=UserService(user_repo, role_repo),
            role_service=RoleService(role_repo),
            catalog=catalog,
            binding_service=binding_service,
            editor=editor,
        )

    @classmethod
    def over_http(cls, settings: Optional[Settings] = None) -> "RbacAdminConsole":
        """Admin API(REST)를 데이터 접근 계층으로 사용하는 콘솔을 만듭니다."""
        from rbac_console.repositories.http import (
            AdminApiClient, HttpPermissionRepository, HttpRoleRepository, HttpUserRepository
        )
        settings = settings or default_settings
        client = AdminApiClient.from_settings(settings)
        return cls.from_repositories(
            HttpUserRepository(client),
            HttpRoleRepository(client),
            HttpPermissionRepository(client),
            settings=settings,
        )

    def _run(self, operation: str, func: Callable, *args, **kwargs) -> Result:
        try:
            return Result.success(func(*args, **kwargs))
        except RbacError as e:
            logger.warning(f"{operation} failed: {e}")
            return Result.failure(e)

    # --- Users ---
    def list_users(self, search: Optional[str] = None) -> Result[List[User]]:
        return self._run("list_users", self.user_service.list_users, search)

    def get_user(self, user_id: str) -> Result[User]:
        return self._run("get_user", self.user_service.get_user, user_id)

    def create_user(self, username: str, email: str, password: str, confirm_password: str, role: str) -> Result[User]:
        return self._run("create_user", self.user_service.create_user, username, email, password, confirm_password, role)

    def update_user(self, user_id: str, patch: Dict[str, Any]) -> Result[User]:
        return self._run("update_user", self.user_service.update_user, user_id, patch)

    def delete_user(self, user_id: str) -> Result[bool]:
        return self._run("delete_user", self.user_service.delete_user, user_id)

    def toggle_user_status(self, user_id: str) -> Result[User]:
        return self._run("toggle_user_status", self.user_service.toggle_status, user_id)

    def reset_password(self, user_id: str, new_password: str, confirm_password: str) -> Result[bool]:
        return self._run("reset_password", self.user_service.reset_password, user_id, new_password, confirm_password)

    # --- Roles ---
    def list_roles(self, search: Optional[str] = None) -> Result[List[Role]]:
        return self._run("list_roles", self.role_service.list_roles, search)

    def get_role(self, role_id: str) -> Result[Role]:
        return self._run("get_role", self.role_service.get_role, role_id)

    def create_role(self, name: str, description: str, permission_level_label: str = "") -> Result[Role]:
        return self._run("create_role", self.role_service.create_role, name, description, permission_level_label)

    def update_role(self, role_id: str, patch: Dict[str, Any]) -> Result[Role]:
        return self._run("update_role", self.role_service.update_role, role_id, patch)

    def delete_role(self, role_id: str) -> Result[bool]:
        result = self._run("delete_role", self.role_service.delete_role, role_id)
        if result.ok and self.editor.role_id == role_id:
            # 삭제된 역할의 편집 상태는 의미가 없으므로 Idle로 돌린다
            self.editor.select_role(None, discard_changes=True)
        return result

    # --- Permission catalog ---
    def list_permission_groups(self) -> Result[List[PermissionGroup]]:
        return self._run("list_permission_groups", self.catalog.list_permission_groups)

    def list_permissions(self) -> Result[List[Permission]]:
        return self._run("list_permissions", self.catalog.list_permissions)

    def check_role_permission(self, role_id: str, permission_code: str) -> Result[PermissionCheckResult]:
        return self._run("check_role_permission", self.binding_service.check_permission, role_id, permission_code)

    # --- Role-permission editing ---
    def select_role(self, role_id: Optional[str], discard_changes: bool = False) -> Result[Optional[RolePermissions]]:
        return self._run("select_role", self.editor.select_role, role_id, discard_changes)

    def begin_edit(self) -> Result:
        return self._run("begin_edit", self.editor.begin_edit)

    def toggle_permission(self, permission_id: str, granted: bool) -> Result[bool]:
        return self._run("toggle_permission", self._toggle_known_permission, permission_id, granted)

    def cancel_edit(self) -> Result[RolePermissions]:
        return self._run("cancel_edit", self.editor.cancel_edit)

    def commit_permissions(self, remark: Optional[str] = None) -> Result[RolePermissions]:
        return self._run("commit_permissions", self.editor.commit, remark)

    def is_granted(self, permission_id: str) -> bool:
        return self.editor.is_granted(permission_id)

    @property
    def editor_state(self) -> EditorState:
        return self.editor.state

    @property
    def selected_role_id(self) -> Optional[str]:
        return self.editor.role_id

    @property
    def has_unsaved_changes(self) -> bool:
        return self.editor.has_unsaved_changes

    @property
    def permissions_saved(self) -> bool:
        return self.editor.saved_acknowledged

    def _toggle_known_permission(self, permission_id: str, granted: bool) -> bool:
        if permission_id not in self.catalog.permission_ids():
            raise ValidationError(f"Unknown permission id '{permission_id}'.")
        return self.editor.toggle_permission(permission_id, granted)
