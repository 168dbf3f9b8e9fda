import logging
from typing import Any, Dict, Optional

import requests

from rbac_console.repositories.http.envelope import ApiError, normalize_envelope
from rbac_console.result import Result

logger = logging.getLogger(__name__)


class AdminApiClient:
    """
    보안 관리 Admin API에 대한 얇은 HTTP 클라이언트.

    모든 호출은 예외를 던지지 않고 Result를 반환합니다. 연결 실패 같은 전송 오류는
    code=0인 ApiError로, HTTP 오류 응답은 해당 상태 코드의 ApiError로 변환됩니다.

    Usage:
        client = AdminApiClient("http://localhost:8080", prefix="/dfm/security")
        result = client.get("/roles")
        if result.ok:
            roles = result.value
    """

    def __init__(
        self,
        base_url: str,
        prefix: str = "/dfm/security",
        timeout: float = 10.0,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    @classmethod
    def from_settings(cls, settings) -> "AdminApiClient":
        return cls(
            base_url=settings.API_BASE_URL,
            prefix=settings.API_PREFIX,
            timeout=settings.API_TIMEOUT_SECONDS,
            token=settings.API_TOKEN,
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{self.prefix}/{path.lstrip('/')}"

    def request(self, method: str, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Result:
        url = self.url_for(path)
        try:
            response = self.session.request(method, url, json=json, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            return Result.failure(ApiError(0, str(e) or "Network error"))

        if not response.content:
            payload = None
        else:
            try:
                payload = response.json()
            except ValueError:
                payload = {"message": response.text} if response.status_code >= 400 else response.text

        result = normalize_envelope(payload, response.status_code)
        if not result.ok:
            logger.warning(f"{method} {url} returned error: {result.error}")
        return result

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Result:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Result:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Result:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Result:
        return self.request("DELETE", path)
