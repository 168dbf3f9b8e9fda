import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from rbac_console.entities import User, UserStatus
from rbac_console.repositories.interfaces import IRoleRepository, IUserRepository
from rbac_console.services.exceptions import UserCreationError, UserNotFoundError, ValidationError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("username", "email", "role", "status")


def matches_search(query: Optional[str], *values: Optional[str]) -> bool:
    """대소문자를 구분하지 않는 부분 문자열 검색. query가 비어 있으면 항상 True."""
    if not query:
        return True
    needle = query.lower()
    return any(needle in (value or "").lower() for value in values)


class UserService:
    """사용자 계정의 생성, 수정, 상태 전환, 비밀번호 재설정을 담당합니다."""

    def __init__(self, user_repo: IUserRepository, role_repo: IRoleRepository):
        """
        UserService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            role_repo: 역할 데이터에 접근하기 위한 리포지토리 (사용자 생성 시 역할 검증용).
        """
        self.user_repo = user_repo
        self.role_repo = role_repo

    def list_users(self, search: Optional[str] = None) -> List[User]:
        """
        모든 사용자의 목록을 조회합니다. search가 주어지면 username, email, id로 거릅니다.

        Raises:
            DataUnavailableError: 저장소 조회에 실패했을 때.
        """
        users = self.user_repo.list_all()
        return [u for u in users if matches_search(search, u.username, u.email, u.id)]

    def get_user(self, user_id: str) -> User:
        """
        ID로 특정 사용자를 조회합니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    def create_user(self, username: str, email: str, password: str, confirm_password: str, role: str) -> User:
        """
        새로운 사용자를 생성합니다. 새 사용자는 Active 상태이며 lastLogin은 현재 시각입니다.

        입력 검증(필수 필드, 비밀번호 확인)은 저장소 호출 전에 수행됩니다.

        Raises:
            ValidationError: 필수 필드가 비어 있거나, 비밀번호 확인이 일치하지 않거나,
                역할 이름이 존재하지 않을 때.
            UserCreationError: 동일한 이름의 사용자가 이미 존재할 때.
        """
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required.")
        if password != confirm_password:
            raise ValidationError("Password and confirmation do not match.")

        if not self.role_repo.find_by_name(role):
            raise ValidationError(f"Role '{role}' does not exist.")
        if self.user_repo.find_by_username(username):
            raise UserCreationError(f"User with username '{username}' already exists.")

        draft = User(
            username=username,
            email=email,
            role=role,
            status=UserStatus.ACTIVE,
            last_login=datetime.now().replace(microsecond=0),
        )
        created_user = self.user_repo.create(draft, password)
        logger.info(f"User '{created_user.username}' created with role '{created_user.role}'")
        return created_user

    def update_user(self, user_id: str, patch: Dict[str, Any]) -> User:
        """
        사용자의 일부 필드를 수정합니다. 값이 None인 필드는 그대로 둡니다.

        역할 변경이 Role의 사용자 수를 다시 계산하지는 않습니다.

        Raises:
            ValidationError: 알 수 없는 필드, 잘못된 상태 값, 빈 이름/이메일, 이름 중복일 때.
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        unknown = set(patch) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown user fields: {', '.join(sorted(unknown))}")

        changes = {k: v for k, v in patch.items() if v is not None}
        for required in ("username", "email", "role"):
            if required in changes and not changes[required]:
                raise ValidationError(f"User {required} must not be empty.")
        if "status" in changes:
            try:
                changes["status"] = UserStatus.parse(changes["status"])
            except ValueError:
                raise ValidationError(f"Invalid user status '{changes['status']}'.")

        user = self.get_user(user_id)
        if not changes:
            return user

        if "username" in changes and changes["username"] != user.username:
            if self.user_repo.find_by_username(changes["username"]):
                raise ValidationError(f"User with username '{changes['username']}' already exists.")

        updated_user = self.user_repo.update(user_id, changes)
        if not updated_user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        logger.info(f"User '{user_id}' updated: {', '.join(sorted(changes))}")
        return updated_user

    def delete_user(self, user_id: str) -> bool:
        """
        사용자를 삭제합니다. 역할의 사용자 수와 관련된 검사는 하지 않습니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        if not self.user_repo.delete(user_id):
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        logger.info(f"User '{user_id}' deleted")
        return True

    def toggle_status(self, user_id: str) -> User:
        """Active <-> Locked를 전환합니다. 세션 무효화 같은 부수 효과는 없습니다."""
        user = self.get_user(user_id)
        return self.update_user(user_id, {"status": user.status.toggled()})

    def reset_password(self, user_id: str, new_password: str, confirm_password: str) -> bool:
        """
        사용자의 비밀번호를 재설정합니다. 복잡도 정책은 적용하지 않습니다.

        Raises:
            ValidationError: 새 비밀번호가 비어 있거나 확인 값과 다를 때.
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        if not new_password:
            raise ValidationError("New password is required.")
        if new_password != confirm_password:
            raise ValidationError("Password and confirmation do not match.")

        if not self.user_repo.set_password(user_id, new_password):
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        logger.info(f"Password of user '{user_id}' reset")
        return True
