from typing import Any, Optional, Type

from rbac_console.repositories.http.client import AdminApiClient
from rbac_console.result import Result
from rbac_console.services.exceptions import (
    DataUnavailableError, PreconditionFailedError, UpdateFailedError, ValidationError
)

NOT_FOUND = 404


class HttpRepositoryBase:
    """Result를 서비스 계층의 예외 체계로 옮기는 HTTP 리포지토리 공통 부분."""

    def __init__(self, client: AdminApiClient):
        self.client = client

    @staticmethod
    def _is_missing(result: Result) -> bool:
        return not result.ok and getattr(result.error, "code", None) == NOT_FOUND

    def _read(self, result: Result, what: str, allow_missing: bool = False) -> Any:
        """
        조회 결과를 꺼냅니다.

        Raises:
            DataUnavailableError: 조회가 실패했을 때. allow_missing이면 404는 None으로 반환.
        """
        if result.ok:
            return result.value
        if allow_missing and self._is_missing(result):
            return None
        raise DataUnavailableError(f"Failed to fetch {what}: {getattr(result.error, 'message', result.error)}") from result.error

    def _write(
        self,
        result: Result,
        what: str,
        precondition_error: Type[PreconditionFailedError] = PreconditionFailedError
    ) -> Optional[Any]:
        """
        쓰기 결과를 꺼냅니다. 대상이 없으면(404) None을 반환합니다.

        Raises:
            ValidationError: 서버가 입력을 거부했을 때 (400).
            PreconditionFailedError: 서버가 사전 조건 위반을 보고했을 때 (412).
            UpdateFailedError: 그 밖의 모든 실패.
        """
        if result.ok:
            return result.value
        code = getattr(result.error, "code", None)
        message = getattr(result.error, "message", str(result.error))
        if code == NOT_FOUND:
            return None
        if code == 400:
            raise ValidationError(message) from result.error
        if code == 412:
            raise precondition_error(message) from result.error
        raise UpdateFailedError(f"Failed to {what}: {message}") from result.error
