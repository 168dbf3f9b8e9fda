"""
Admin API 응답 봉투(envelope)를 하나의 Result 형태로 정규화합니다.

백엔드마다 응답 모양이 다릅니다.
  - {"code": 200, "message": "success", "data": ...}    (Java Result<T> 스타일)
  - {"success": true, "message": "...", "data": ...}
  - 봉투 없이 데이터만 내려주는 경우
모양 판별은 이 모듈에서만 수행하며, 리포지토리와 서비스는 Result만 다룹니다.
"""

from typing import Any, Optional

from rbac_console.result import Result

SUCCESS_CODE = 200


class ApiError(Exception):
    """Admin API 호출 실패. code는 HTTP 상태 코드 또는 봉투의 code이며, 전송 실패는 0입니다."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


def _is_true(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.lower() == "true")


def normalize_envelope(payload: Any, status_code: Optional[int] = None) -> Result:
    """
    응답 본문을 Result로 변환합니다.

    Args:
        payload: 디코딩된 JSON 본문.
        status_code: HTTP 상태 코드. 봉투에 code가 없을 때 실패 코드로 사용됩니다.

    Returns:
        성공이면 data를 값으로, 실패면 ApiError를 담은 Result.
    """
    fallback_code = status_code if status_code and status_code >= 400 else 500

    if isinstance(payload, dict) and "code" in payload and ("data" in payload or "message" in payload):
        code = payload.get("code")
        if code == SUCCESS_CODE or str(code) == str(SUCCESS_CODE) or _is_true(payload.get("success")):
            return Result.success(payload.get("data"))
        try:
            error_code = int(code)
        except (TypeError, ValueError):
            error_code = fallback_code
        return Result.failure(ApiError(error_code, payload.get("message") or "Request failed"))

    if isinstance(payload, dict) and "success" in payload:
        if _is_true(payload.get("success")):
            return Result.success(payload.get("data"))
        return Result.failure(ApiError(fallback_code, payload.get("message") or "Request failed"))

    if status_code and status_code >= 400:
        message = payload.get("message") if isinstance(payload, dict) else None
        return Result.failure(ApiError(status_code, message or "Request failed"))

    return Result.success(payload)
