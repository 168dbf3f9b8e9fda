import logging
from typing import List, Optional, Set

from rbac_console.entities import Permission, PermissionGroup
from rbac_console.repositories.interfaces import IPermissionRepository

logger = logging.getLogger(__name__)


class PermissionCatalog:
    """
    권한 그룹 카탈로그. 관리 세션 동안 변하지 않는 참조 데이터로 취급합니다.

    처음 조회할 때 한 번만 저장소에서 가져와 캐시하며, 조회에 실패하면 캐시하지 않습니다.
    """

    def __init__(self, permission_repo: IPermissionRepository):
        self.permission_repo = permission_repo
        self._groups: Optional[List[PermissionGroup]] = None

    def list_permission_groups(self) -> List[PermissionGroup]:
        """
        권한 그룹 목록을 반환합니다.

        Raises:
            DataUnavailableError: 최초 조회에 실패했을 때.
        """
        if self._groups is None:
            self._groups = self.permission_repo.list_groups()
            logger.info(f"Permission catalog loaded: {len(self._groups)} group(s), {len(self.permission_ids())} permission(s)")
        return list(self._groups)

    def refresh(self):
        """캐시를 비웁니다. 다음 조회 시 저장소에서 다시 가져옵니다."""
        self._groups = None

    def list_permissions(self) -> List[Permission]:
        return [p for group in self.list_permission_groups() for p in group.permissions]

    def permission_ids(self) -> Set[str]:
        return {p.id for p in self.list_permissions()}

    def find_by_id(self, permission_id: str) -> Optional[Permission]:
        return next((p for p in self.list_permissions() if p.id == permission_id), None)

    def find_by_code(self, code: str) -> Optional[Permission]:
        return next((p for p in self.list_permissions() if p.code == code), None)
