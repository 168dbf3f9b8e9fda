import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rbac_console.services.exceptions import DataUnavailableError, UpdateFailedError

logger = logging.getLogger(__name__)


class SqlalchemyRepositoryBase:
    """SQLAlchemy 오류를 서비스 계층의 예외 체계로 옮기는 SQL 리포지토리 공통 부분."""

    def __init__(self, db_session: Session):
        self.db = db_session

    @contextmanager
    def _reading(self, what: str):
        """
        조회 구간. 실패한 세션은 롤백하여 다음 호출에 쓸 수 있게 둡니다.

        Raises:
            DataUnavailableError: 조회 중 SQLAlchemy 오류가 발생했을 때.
        """
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to fetch {what}: {e}")
            raise DataUnavailableError(f"Failed to fetch {what}.") from e

    @contextmanager
    def _writing(self, what: str):
        """
        쓰기 구간. 실패하면 트랜잭션 전체를 롤백하므로 기존 데이터는 그대로 남습니다.

        Raises:
            UpdateFailedError: 쓰기 중 SQLAlchemy 오류가 발생했을 때.
        """
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to {what}: {e}")
            raise UpdateFailedError(f"Failed to {what}.") from e
