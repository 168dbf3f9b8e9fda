import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional, Set

from rbac_console.entities import RolePermissions
from rbac_console.services.exceptions import (
    CommitInProgressError, EditorStateError, RbacError, UnsavedChangesError, UpdateFailedError
)
from rbac_console.services.role_permission_service import RolePermissionService

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    IDLE = "idle"
    VIEWING = "viewing"
    EDITING = "editing"
    COMMITTING = "committing"


class RolePermissionEditor:
    """
    역할 하나의 권한 바인딩을 편집하는 상태 머신.

    Idle -> (select_role) -> Viewing -> (begin_edit) -> Editing -> (commit) -> Committing -> Viewing
                                                        Editing -> (cancel_edit) -> Viewing

    편집 중의 모든 토글은 로컬 초안(draft)에만 반영되며, 저장된 바인딩은 commit() 전까지
    바뀌지 않습니다. commit()은 항상 초안 전체를 보내는 전체 교체이고, 성공하면 서버의
    바인딩을 다시 조회합니다.
    """

    def __init__(
        self,
        binding_service: RolePermissionService,
        saved_ack_seconds: float = 2.0,
        default_remark: str = "Permission update",
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            binding_service: 바인딩 조회/교체 서비스.
            saved_ack_seconds: 저장 완료 표시가 유지되는 시간(초).
            default_remark: commit()에 remark를 주지 않았을 때 함께 보내는 메모.
            clock: 단조 증가 시계. 테스트에서 교체할 수 있습니다.
        """
        self.binding_service = binding_service
        self.saved_ack_seconds = saved_ack_seconds
        self.default_remark = default_remark
        self._clock = clock

        self.state = EditorState.IDLE
        self.role_id: Optional[str] = None
        self.current: Optional[RolePermissions] = None
        self._draft: Optional[Set[str]] = None
        self._saved_at: Optional[float] = None
        self._commit_lock = threading.Lock()

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    @property
    def editing_permissions(self) -> Set[str]:
        return set(self._draft) if self._draft is not None else set()

    @property
    def has_unsaved_changes(self) -> bool:
        if self.state is not EditorState.EDITING or self.current is None:
            return False
        return self._draft != self.current.granted_permissions

    @property
    def saved_acknowledged(self) -> bool:
        """마지막 저장 성공 후 saved_ack_seconds 동안만 True."""
        if self._saved_at is None:
            return False
        return self._clock() - self._saved_at < self.saved_ack_seconds

    def is_granted(self, permission_id: str) -> bool:
        """편집 중에는 초안을, 그 밖에는 저장된 바인딩을 기준으로 답합니다."""
        if self.state in (EditorState.EDITING, EditorState.COMMITTING):
            return permission_id in self._draft
        if self.current is None:
            return False
        return permission_id in self.current.granted_permissions

    # ------------------------------------------------------------------
    # 상태 전이
    # ------------------------------------------------------------------

    def select_role(self, role_id: Optional[str], discard_changes: bool = False) -> Optional[RolePermissions]:
        """
        편집 대상 역할을 선택하고 바인딩을 불러옵니다. None이면 Idle로 돌아갑니다.

        Raises:
            CommitInProgressError: 저장이 진행 중일 때.
            UnsavedChangesError: 저장하지 않은 변경이 있고 discard_changes가 False일 때.
            RoleNotFoundError, DataUnavailableError: 바인딩 조회에 실패했을 때 (편집기는 Idle).
        """
        if self.state is EditorState.COMMITTING:
            raise CommitInProgressError("Permissions are being saved; wait for the commit to finish.")
        if self.has_unsaved_changes and not discard_changes:
            raise UnsavedChangesError(f"Role '{self.role_id}' has unsaved permission changes.")
        if self.state is EditorState.EDITING:
            logger.info(f"Discarding permission draft of role '{self.role_id}'")

        self.state = EditorState.IDLE
        self.role_id = None
        self.current = None
        self._draft = None
        self._saved_at = None
        if role_id is None:
            return None

        binding = self.binding_service.get_binding(role_id)
        self.role_id = role_id
        self.current = binding
        self.state = EditorState.VIEWING
        return binding

    def begin_edit(self) -> Set[str]:
        """Viewing -> Editing. 초안은 현재 바인딩의 복사본으로 시작합니다."""
        if self.state is not EditorState.VIEWING or self.current is None:
            raise EditorStateError(f"Cannot begin editing in state '{self.state.value}'.")
        self._draft = set(self.current.granted_permissions)
        self._saved_at = None
        self.state = EditorState.EDITING
        return self.editing_permissions

    def toggle_permission(self, permission_id: str, granted: bool) -> bool:
        """초안에 권한을 넣거나 뺍니다. 이미 같은 상태면 아무것도 바뀌지 않습니다."""
        self._require_editing()
        if granted:
            self._draft.add(permission_id)
        else:
            self._draft.discard(permission_id)
        return permission_id in self._draft

    def cancel_edit(self) -> RolePermissions:
        """
        Editing -> Viewing. 초안을 버리고, 다른 관리자의 변경을 반영하기 위해 바인딩을 다시 조회합니다.

        Raises:
            DataUnavailableError: 재조회에 실패했을 때 (편집기는 이전 바인딩으로 Viewing).
        """
        self._require_editing()
        self._draft = None
        self.state = EditorState.VIEWING
        return self._reload()

    def commit(self, remark: Optional[str] = None) -> RolePermissions:
        """
        초안 전체로 바인딩을 교체합니다.

        성공하면 Viewing으로 돌아가 바인딩을 다시 조회하고 저장 완료 표시를 켭니다.
        실패하면 Editing으로 돌아가며 초안은 그대로 남습니다.

        Raises:
            CommitInProgressError: 다른 commit()이 진행 중일 때.
            EditorStateError: 편집 중이 아닐 때.
            UpdateFailedError: 교체 호출이 실패했을 때.
        """
        if not self._commit_lock.acquire(blocking=False):
            raise CommitInProgressError("Another permission commit is in progress.")
        try:
            self._require_editing()
            role_id = self.role_id
            permission_ids = sorted(self._draft)
            self.state = EditorState.COMMITTING
            try:
                saved = self.binding_service.replace_binding(role_id, permission_ids, remark or self.default_remark)
            except UpdateFailedError:
                self.state = EditorState.EDITING
                logger.warning(f"Saving permissions of role '{role_id}' failed; draft kept")
                raise
            except RbacError as e:
                self.state = EditorState.EDITING
                logger.warning(f"Saving permissions of role '{role_id}' failed; draft kept: {e}")
                raise UpdateFailedError(f"Failed to save permissions of role '{role_id}': {e.message}") from e
            except Exception:
                self.state = EditorState.EDITING
                raise

            self._draft = None
            self.current = saved
            self.state = EditorState.VIEWING
            self._saved_at = self._clock()
            try:
                self._reload()
            except RbacError as e:
                logger.warning(f"Permissions of role '{role_id}' saved but re-fetch failed: {e}")
            return self.current
        finally:
            self._commit_lock.release()

    def _require_editing(self):
        if self.state is EditorState.COMMITTING:
            raise CommitInProgressError("Permissions are being saved.")
        if self.state is not EditorState.EDITING:
            raise EditorStateError(f"Not editing (state '{self.state.value}').")

    def _reload(self) -> RolePermissions:
        binding = self.binding_service.get_binding(self.role_id)
        self.current = binding
        return binding
