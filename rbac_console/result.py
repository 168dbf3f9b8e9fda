from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    성공 값 또는 실패 원인(예외 인스턴스) 중 하나를 담는 결과 객체.

    HTTP 응답 봉투(envelope) 정규화와 콘솔 명령의 반환 값에 공통으로 사용됩니다.
    """
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> Optional[T]:
        """성공이면 값을 반환하고, 실패면 담긴 예외를 그대로 발생시킵니다."""
        if self.error is not None:
            raise self.error
        return self.value
