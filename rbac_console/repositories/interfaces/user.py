from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from rbac_console.entities import User


class IUserRepository(ABC):
    @abstractmethod
    def create(self, user: User, password: str) -> User:
        """새로운 사용자를 생성합니다. 비밀번호 해시는 저장소 쪽에서 처리합니다."""
        pass

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]:
        """고유 ID로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[User]:
        """사용자 이름으로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[User]:
        """모든 사용자의 목록을 조회합니다."""
        pass

    @abstractmethod
    def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        """
        사용자의 일부 필드를 갱신합니다.

        Args:
            user_id: 갱신할 사용자의 ID.
            changes: 엔티티 필드 이름(username, email, role, status)을 키로 하는 변경 값.

        Returns:
            갱신된 사용자. 대상이 없으면 None.
        """
        pass

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """특정 사용자를 삭제합니다. 대상이 없으면 False를 반환합니다."""
        pass

    @abstractmethod
    def set_password(self, user_id: str, password: str) -> bool:
        """사용자의 비밀번호를 교체합니다. 대상이 없으면 False를 반환합니다."""
        pass
