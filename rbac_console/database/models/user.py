import uuid

from sqlalchemy import Column, DateTime, String

from ..database import Base


def _new_user_id() -> str:
    return f"user-{uuid.uuid4().hex[:8]}"


class User(Base):
    """
    관리 콘솔에 로그인하는 사용자를 나타냅니다.
    role은 Role.name을 가리키는 느슨한 참조(soft reference)이며, 외래 키가 아닙니다.
    역할 이름이 바뀌어도 사용자 쪽 값은 자동으로 바뀌지 않습니다.
    """
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=_new_user_id)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="Active")
    last_login = Column(DateTime, nullable=True)
