from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from rbac_console.entities import PermissionGroup, RolePermissions


class IPermissionRepository(ABC):
    @abstractmethod
    def list_groups(self) -> List[PermissionGroup]:
        """권한 카탈로그 전체를 그룹 순서대로 조회합니다."""
        pass

    @abstractmethod
    def get_role_permissions(self, role_id: str) -> Optional[RolePermissions]:
        """
        특정 역할에 현재 부여된 권한 바인딩을 조회합니다.

        Returns:
            역할의 바인딩. 역할이 존재하지 않으면 None.
        """
        pass

    @abstractmethod
    def replace_role_permissions(self, role_id: str, permission_ids: Sequence[str], remark: str) -> Optional[RolePermissions]:
        """
        역할의 권한 바인딩을 주어진 집합으로 통째로 교체합니다.
        부분 갱신(diff)은 지원하지 않으며, 실패 시 기존 바인딩이 그대로 유지되어야 합니다.

        Returns:
            교체 후의 바인딩. 역할이 존재하지 않으면 None.
        """
        pass
