import hashlib
from typing import Any, Dict, List, Optional

from rbac_console.database import models
from rbac_console.entities import User, UserStatus
from rbac_console.repositories.interfaces import IUserRepository
from rbac_console.repositories.sqlalchemy.base import SqlalchemyRepositoryBase

UPDATABLE_FIELDS = ("username", "email", "role", "status")


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


class SqlalchemyUserRepository(SqlalchemyRepositoryBase, IUserRepository):
    def create(self, user: User, password: str) -> User:
        with self._writing(f"create user '{user.username}'"):
            user_model = models.User(
                username=user.username,
                email=user.email,
                password_hash=hash_password(password),
                role=user.role,
                status=user.status.value,
                last_login=user.last_login,
            )
            self.db.add(user_model)
            self.db.commit()
            self.db.refresh(user_model)
            return self._to_entity(user_model)

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._reading(f"user '{user_id}'"):
            user_model = self._get(user_id)
            return self._to_entity(user_model) if user_model else None

    def find_by_username(self, username: str) -> Optional[User]:
        with self._reading(f"user '{username}'"):
            user_model = self.db.query(models.User).filter(models.User.username == username).first()
            return self._to_entity(user_model) if user_model else None

    def list_all(self) -> List[User]:
        with self._reading("users"):
            users = self.db.query(models.User).order_by(models.User.username.asc()).all()
            return [self._to_entity(u) for u in users]

    def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        with self._writing(f"update user '{user_id}'"):
            user_model = self._get(user_id)
            if not user_model:
                return None
            for field_name in UPDATABLE_FIELDS:
                if field_name not in changes:
                    continue
                value = changes[field_name]
                if isinstance(value, UserStatus):
                    value = value.value
                setattr(user_model, field_name, value)
            self.db.commit()
            self.db.refresh(user_model)
            return self._to_entity(user_model)

    def delete(self, user_id: str) -> bool:
        with self._writing(f"delete user '{user_id}'"):
            user_model = self._get(user_id)
            if user_model:
                self.db.delete(user_model)
                self.db.commit()
                return True
            return False

    def set_password(self, user_id: str, password: str) -> bool:
        with self._writing(f"reset password of user '{user_id}'"):
            user_model = self._get(user_id)
            if not user_model:
                return False
            user_model.password_hash = hash_password(password)
            self.db.commit()
            return True

    def _get(self, user_id: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    @staticmethod
    def _to_entity(user_model: models.User) -> User:
        return User(
            id=user_model.id,
            username=user_model.username,
            email=user_model.email,
            role=user_model.role,
            status=UserStatus.parse(user_model.status),
            last_login=user_model.last_login,
        )
