from typing import Any, Dict, List, Optional

from rbac_console.entities import User, UserStatus, format_timestamp
from rbac_console.repositories.http.base import HttpRepositoryBase
from rbac_console.repositories.interfaces import IUserRepository

# 엔티티 필드 이름 -> Admin API 필드 이름
WIRE_FIELDS = {"username": "username", "email": "email", "role": "role", "status": "status"}


class HttpUserRepository(HttpRepositoryBase, IUserRepository):
    def create(self, user: User, password: str) -> User:
        body = {
            "username": user.username,
            "email": user.email,
            "password": password,
            "role": user.role,
            "status": user.status.value,
            "lastLogin": format_timestamp(user.last_login),
        }
        data = self._write(self.client.post("/users", json=body), f"create user '{user.username}'")
        return User.from_dict(data) if data else user

    def find_by_id(self, user_id: str) -> Optional[User]:
        data = self._read(self.client.get(f"/users/{user_id}"), f"user '{user_id}'", allow_missing=True)
        return User.from_dict(data) if data else None

    def find_by_username(self, username: str) -> Optional[User]:
        # Admin API에는 이름 조회 엔드포인트가 없으므로 목록에서 찾음
        return next((u for u in self.list_all() if u.username == username), None)

    def list_all(self) -> List[User]:
        data = self._read(self.client.get("/users"), "users")
        return [User.from_dict(item) for item in data or [] if item]

    def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        body = {}
        for field_name, wire_name in WIRE_FIELDS.items():
            if field_name in changes:
                value = changes[field_name]
                body[wire_name] = value.value if isinstance(value, UserStatus) else value
        result = self.client.put(f"/users/{user_id}", json=body)
        if self._is_missing(result):
            return None
        data = self._write(result, f"update user '{user_id}'")
        # 본문 없이 성공만 알려 주는 서버도 있으므로 갱신된 사용자를 다시 조회
        return User.from_dict(data) if data else self.find_by_id(user_id)

    def delete(self, user_id: str) -> bool:
        result = self.client.delete(f"/users/{user_id}")
        if self._is_missing(result):
            return False
        self._write(result, f"delete user '{user_id}'")
        return True

    def set_password(self, user_id: str, password: str) -> bool:
        result = self.client.put(f"/users/{user_id}/password", json={"password": password})
        if self._is_missing(result):
            return False
        self._write(result, f"reset password of user '{user_id}'")
        return True
