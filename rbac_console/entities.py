"""
서비스 계층과 리포지토리 사이에서 주고받는 RBAC 도메인 엔티티.

SQLAlchemy 모델과 HTTP 응답은 모두 이 엔티티로 변환된 뒤 서비스에 전달됩니다.
to_dict()/from_dict()는 Admin API의 JSON 표현(camelCase)을 다룹니다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class UserStatus(str, Enum):
    ACTIVE = "Active"
    LOCKED = "Locked"

    @classmethod
    def parse(cls, value: Any) -> "UserStatus":
        """'Active'/'Locked' 외에 기존 백엔드의 레이블(活跃/锁定)도 허용합니다."""
        if isinstance(value, cls):
            return value
        normalized = _LEGACY_STATUS_LABELS.get(str(value).strip(), str(value).strip().capitalize())
        return cls(normalized)

    def toggled(self) -> "UserStatus":
        return UserStatus.LOCKED if self is UserStatus.ACTIVE else UserStatus.ACTIVE


_LEGACY_STATUS_LABELS = {"活跃": "Active", "锁定": "Locked"}


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(TIMESTAMP_FORMAT) if value else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).replace("T", " ")[:19]
    return datetime.strptime(text, TIMESTAMP_FORMAT)


@dataclass
class User:
    username: str
    email: str
    role: str
    status: UserStatus = UserStatus.ACTIVE
    last_login: Optional[datetime] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "status": self.status.value,
            "lastLogin": format_timestamp(self.last_login),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data.get("id"),
            username=data.get("username", ""),
            email=data.get("email", ""),
            role=data.get("role", ""),
            status=UserStatus.parse(data.get("status") or UserStatus.ACTIVE),
            last_login=parse_timestamp(data.get("lastLogin")),
        )


@dataclass
class Role:
    """
    사용자에게 부여되는 권한 묶음.

    user_count는 백엔드가 계산해 내려주는 값이며, 0보다 크면 삭제할 수 없습니다.
    permission_level_label은 '읽기 전용' 같은 사람이 읽는 요약일 뿐, 실제 권한은
    RolePermissions 바인딩이 결정합니다.
    """
    name: str
    description: str
    permission_level_label: str = ""
    user_count: int = 0
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        # 기존 백엔드와의 호환을 위해 'users', 'permissions' 키를 사용합니다.
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "users": self.user_count,
            "permissions": self.permission_level_label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Role":
        user_count = data.get("users", data.get("userCount", 0))
        label = data.get("permissions", data.get("permissionLevelLabel", ""))
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            description=data.get("description", ""),
            permission_level_label=label or "",
            user_count=int(user_count or 0),
        )


@dataclass
class Permission:
    id: str
    name: str
    code: str = ""
    description: Optional[str] = None
    group_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "groupId": self.group_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Permission":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            code=data.get("code", ""),
            description=data.get("description"),
            group_id=data.get("groupId"),
        )


@dataclass
class PermissionGroup:
    id: str
    name: str
    permissions: List[Permission] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "permissions": [p.to_dict() for p in self.permissions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermissionGroup":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description"),
            permissions=[Permission.from_dict(p) for p in data.get("permissions") or []],
        )


@dataclass
class RolePermissions:
    """역할 하나에 부여된 권한 ID 집합(바인딩)."""
    role_id: str
    role_name: str
    granted_permissions: Set[str] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roleId": self.role_id,
            "roleName": self.role_name,
            "grantedPermissions": sorted(self.granted_permissions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RolePermissions":
        return cls(
            role_id=str(data.get("roleId", "")),
            role_name=data.get("roleName", ""),
            granted_permissions=set(data.get("grantedPermissions") or []),
        )


@dataclass
class PermissionCheckResult:
    role_id: str
    permission_code: str
    has_permission: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roleId": self.role_id,
            "permissionCode": self.permission_code,
            "hasPermission": self.has_permission,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermissionCheckResult":
        return cls(
            role_id=str(data.get("roleId", "")),
            permission_code=data.get("permissionCode", ""),
            has_permission=bool(data.get("hasPermission")),
        )
