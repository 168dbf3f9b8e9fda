# tests/test_app.py
import io
import json
from urllib.parse import urlencode, urlsplit
from wsgiref.util import setup_testing_defaults

import pytest
import requests

from rbac_console import app
from rbac_console.config import Settings
from rbac_console.repositories.http import (
    AdminApiClient, HttpPermissionRepository, HttpRoleRepository, HttpUserRepository
)
from rbac_console.services.admin_console import RbacAdminConsole
from rbac_console.services.exceptions import *

PREFIX = "/dfm/security"

# ===================================================================
#  WSGI 호출 유틸리티 및 Fixture
# ===================================================================

def call_app(method, path, body=None, query=""):
    """WSGI 애플리케이션을 직접 호출하고 (상태 코드, 응답 JSON)을 반환합니다."""
    raw = json.dumps(body).encode("utf-8") if body is not None else b""
    environ = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "CONTENT_LENGTH": str(len(raw)),
        "wsgi.input": io.BytesIO(raw),
    }
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers):
        captured["status"] = status

    chunks = app.application(environ, start_response)
    return int(captured["status"].split(" ", 1)[0]), json.loads(b"".join(chunks).decode("utf-8"))

@pytest.fixture(autouse=True)
def seeded_app(monkeypatch, seeded_session_factory):
    """요청마다 기본 데이터가 들어 있는 인메모리 DB의 세션을 사용하도록 교체합니다."""
    monkeypatch.setattr(app, "SessionLocal", seeded_session_factory)

def role_id_of(name):
    _, body = call_app("GET", f"{PREFIX}/roles")
    return next(r["id"] for r in body["data"] if r["name"] == name)

# ===================================================================
#  사용자 API 테스트
# ===================================================================
class TestUserApi:
    def test_list_users_envelope(self):
        status, body = call_app("GET", f"{PREFIX}/users")

        assert status == 200
        assert body["code"] == 200 and body["success"] is True
        assert [u["username"] for u in body["data"]] == ["admin"]
        assert body["data"][0]["status"] == "Active"

    def test_create_user_and_search(self):
        status, body = call_app("POST", f"{PREFIX}/users", {
            "username": "alice", "email": "alice@example.com", "password": "pw",
            "confirmPassword": "pw", "role": "guest",
        })
        assert status == 200
        assert body["data"]["id"].startswith("user-")
        assert body["data"]["lastLogin"] is not None

        _, found = call_app("GET", f"{PREFIX}/users", query="search=ALICE")
        assert [u["username"] for u in found["data"]] == ["alice"]

    def test_create_user_password_mismatch_is_400(self):
        status, body = call_app("POST", f"{PREFIX}/users", {
            "username": "alice", "email": "alice@example.com", "password": "pw",
            "confirmPassword": "other", "role": "guest",
        })

        assert status == 400
        assert body["success"] is False
        assert body["code"] == 400

    def test_toggle_status_via_patch(self):
        _, users = call_app("GET", f"{PREFIX}/users")
        admin_id = users["data"][0]["id"]

        status, body = call_app("PATCH", f"{PREFIX}/users/{admin_id}", {"status": "锁定"})

        assert status == 200
        assert body["data"]["status"] == "Locked"

    def test_unknown_user_is_404(self):
        status, body = call_app("GET", f"{PREFIX}/users/user-404")

        assert status == 404
        assert body["data"] is None

    def test_invalid_json_is_400(self):
        environ = {"REQUEST_METHOD": "POST", "PATH_INFO": f"{PREFIX}/users",
                   "CONTENT_LENGTH": "5", "wsgi.input": io.BytesIO(b"{oops")}
        setup_testing_defaults(environ)
        captured = {}
        app.application(environ, lambda status, headers: captured.setdefault("status", status))

        assert captured["status"].startswith("400")

    @pytest.mark.parametrize("body", [[], ["alice"], "alice", 3])
    def test_non_object_json_is_400(self, body):
        """JSON 본문이 객체가 아니면 500이 아니라 400으로 거부되는지 테스트합니다."""
        status, response = call_app("POST", f"{PREFIX}/users", body)

        assert status == 400
        assert response["success"] is False

# ===================================================================
#  역할 및 권한 API 테스트
# ===================================================================
class TestRoleApi:
    def test_delete_role_in_use_is_412(self):
        status, body = call_app("DELETE", f"{PREFIX}/roles/{role_id_of('admin')}")

        assert status == 412
        assert "admin" in [r["name"] for r in call_app("GET", f"{PREFIX}/roles")[1]["data"]]

    def test_create_and_delete_role(self):
        status, body = call_app("POST", f"{PREFIX}/roles", {"name": "viewer", "description": "Read only", "permissions": "Read-only"})
        assert status == 200
        assert body["data"]["users"] == 0
        assert body["data"]["permissions"] == "Read-only"

        status, _ = call_app("DELETE", f"{PREFIX}/roles/{body['data']['id']}")
        assert status == 200

    def test_replace_and_read_permissions(self):
        guest_id = role_id_of("guest")

        status, body = call_app("PUT", f"{PREFIX}/roles/{guest_id}/permissions",
                                {"permissionIds": ["monitor_view", "storage_view"], "remark": "Permission update"})

        assert status == 200
        assert body["data"]["grantedPermissions"] == ["monitor_view", "storage_view"]
        _, read_back = call_app("GET", f"{PREFIX}/roles/{guest_id}/permissions")
        assert read_back["data"] == {"roleId": guest_id, "roleName": "guest",
                                     "grantedPermissions": ["monitor_view", "storage_view"]}

    def test_replace_requires_list(self):
        status, _ = call_app("PUT", f"{PREFIX}/roles/{role_id_of('guest')}/permissions", {"permissionIds": "db_view"})

        assert status == 400

    def test_check_permission(self):
        status, body = call_app("GET", f"{PREFIX}/roles/{role_id_of('guest')}/permissions/check",
                                query="permissionCode=monitoring:view")

        assert status == 200
        assert body["data"]["hasPermission"] is True

    def test_permission_groups(self):
        status, body = call_app("GET", f"{PREFIX}/permissions/groups")

        assert status == 200
        assert body["data"][0]["id"] == "database"
        assert body["data"][0]["permissions"][0]["groupId"] == "database"

    def test_unknown_route_is_404(self):
        status, body = call_app("GET", "/api/unknown")

        assert status == 404
        assert body["message"] == "Not Found"

# ===================================================================
#  HTTP 리포지토리를 통해 이 서버를 사용하는 콘솔 테스트
# ===================================================================

def encode_body(body):
    return json.dumps(body).encode("utf-8")

class WsgiSession:
    """requests.Session 대신 요청을 WSGI 애플리케이션으로 바로 보내는 세션."""
    def __init__(self):
        self.headers = {}

    def request(self, method, url, json=None, params=None, timeout=None):
        parts = urlsplit(url)
        status, body = call_app(method, parts.path, json, urlencode(params or {}))
        response = requests.Response()
        response.status_code = status
        response._content = encode_body(body)
        return response

@pytest.fixture
def http_console() -> RbacAdminConsole:
    client = AdminApiClient("http://rbac.test", prefix=PREFIX, session=WsgiSession())
    return RbacAdminConsole.from_repositories(
        HttpUserRepository(client), HttpRoleRepository(client), HttpPermissionRepository(client),
        settings=Settings(),
    )

class TestConsoleOverHttp:
    def test_admin_role_cannot_be_deleted(self, http_console: RbacAdminConsole):
        admin = next(r for r in http_console.list_roles().value if r.name == "admin")

        result = http_console.delete_role(admin.id)

        assert isinstance(result.error, RoleInUseError)

    def test_edit_guest_permissions(self, http_console: RbacAdminConsole):
        guest = next(r for r in http_console.list_roles().value if r.name == "guest")
        http_console.select_role(guest.id)
        http_console.begin_edit()
        http_console.toggle_permission("storage_view", True)
        http_console.toggle_permission("db_view", False)

        committed = http_console.commit_permissions()

        assert committed.ok
        assert committed.value.granted_permissions == {"monitor_view", "storage_view"}

    def test_create_user_over_http(self, http_console: RbacAdminConsole):
        created = http_console.create_user("zoe", "zoe@example.com", "pw", "pw", "analyst")

        assert created.ok
        assert created.value.id.startswith("user-")
        assert http_console.get_user(created.value.id).value.username == "zoe"
