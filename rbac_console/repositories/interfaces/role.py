from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from rbac_console.entities import Role


class IRoleRepository(ABC):
    @abstractmethod
    def create(self, role: Role) -> Role:
        """새로운 역할을 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, role_id: str) -> Optional[Role]:
        """고유 ID로 특정 역할을 조회합니다. user_count는 조회 시점의 값입니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Role]:
        """이름으로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[Role]:
        """모든 역할의 목록을 조회합니다."""
        pass

    @abstractmethod
    def update(self, role_id: str, changes: Dict[str, Any]) -> Optional[Role]:
        """역할의 일부 필드(name, description, permission_level_label)를 갱신합니다."""
        pass

    @abstractmethod
    def delete(self, role_id: str) -> bool:
        """특정 역할과 그 권한 바인딩을 삭제합니다."""
        pass
