# rbac_console/app.py
import json
import logging
import re
import sys
from urllib.parse import parse_qs
from wsgiref.simple_server import make_server

from rbac_console.config import settings
from rbac_console.database.database import SessionLocal
from rbac_console.logging_config import setup_logging
from rbac_console.repositories.sqlalchemy.sqlalchemy_permission_repository import SqlalchemyPermissionRepository
from rbac_console.repositories.sqlalchemy.sqlalchemy_role_repository import SqlalchemyRoleRepository
from rbac_console.repositories.sqlalchemy.sqlalchemy_user_repository import SqlalchemyUserRepository
from rbac_console.services.exceptions import (
    NotFoundError, PreconditionFailedError, RbacError, UpdateFailedError, ValidationError
)
from rbac_console.services.permission_catalog import PermissionCatalog
from rbac_console.services.role_permission_service import RolePermissionService
from rbac_console.services.role_service import RoleService
from rbac_console.services.user_service import UserService

logger = logging.getLogger(__name__)

ID = r'([A-Za-z0-9_.-]+)'

# --------------------------------------------------------------------------
## 요청/응답 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValueError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise ValueError("JSON body must be an object.")
    return data

def get_query_param(environ, name):
    values = parse_qs(environ.get("QUERY_STRING", "")).get(name)
    return values[0] if values else None

def envelope(status, data=None, message="success"):
    """응답 본문을 {code, message, data, success} 봉투로 감쌉니다. code는 HTTP 상태 코드입니다."""
    code = int(status.split(" ", 1)[0])
    return json.dumps({"code": code, "message": message, "data": data, "success": code < 400}, ensure_ascii=False)

ERROR_MAP = [
    (ValidationError, "400 Bad Request"),
    (ValueError, "400 Bad Request"),
    (NotFoundError, "404 Not Found"),
    (PreconditionFailedError, "412 Precondition Failed"),
    (UpdateFailedError, "500 Internal Server Error"),
]

def handle_exception(e):
    status = next((s for exc_type, s in ERROR_MAP if isinstance(e, exc_type)), "500 Internal Server Error")
    if status.startswith("500") and not isinstance(e, RbacError):
        logger.exception("Unhandled error while processing request")
    return status, envelope(status, message=str(e))

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def build_routes(prefix):
    prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
    table = [
        ('GET', r'/users', list_users_handler),
        ('POST', r'/users', create_user_handler),
        ('GET', rf'/users/{ID}', get_user_handler),
        ('PUT', rf'/users/{ID}', update_user_handler),
        ('PATCH', rf'/users/{ID}', update_user_handler),
        ('DELETE', rf'/users/{ID}', delete_user_handler),
        ('PUT', rf'/users/{ID}/password', reset_password_handler),
        ('GET', r'/roles', list_roles_handler),
        ('POST', r'/roles', create_role_handler),
        ('GET', rf'/roles/{ID}', get_role_handler),
        ('PUT', rf'/roles/{ID}', update_role_handler),
        ('PATCH', rf'/roles/{ID}', update_role_handler),
        ('DELETE', rf'/roles/{ID}', delete_role_handler),
        ('GET', rf'/roles/{ID}/permissions', get_role_permissions_handler),
        ('PUT', rf'/roles/{ID}/permissions', replace_role_permissions_handler),
        ('GET', rf'/roles/{ID}/permissions/check', check_role_permission_handler),
        ('GET', r'/permissions/groups', list_permission_groups_handler),
        ('GET', r'/permissions', list_permissions_handler),
    ]
    return [(method, re.compile(f"^{re.escape(prefix)}{pattern}$"), handler) for method, pattern, handler in table]

def application(environ, start_response):
    db_session = SessionLocal()
    try:
        # 1. 의존성 생성 (Repositories -> Services)
        user_repo = SqlalchemyUserRepository(db_session)
        role_repo = SqlalchemyRoleRepository(db_session)
        permission_repo = SqlalchemyPermissionRepository(db_session)

        catalog = PermissionCatalog(permission_repo)

        # 2. 생성된 서비스 객체들을 environ을 통해 핸들러에 전달
        environ['services'] = {
            'users': UserService(user_repo, role_repo),
            'roles': RoleService(role_repo),
            'catalog': catalog,
            'bindings': RolePermissionService(permission_repo, catalog),
        }

        # 3. 라우팅 및 핸들러 실행
        path = environ.get("PATH_INFO", "")
        method = environ.get("REQUEST_METHOD", "")

        handler, path_args = None, []
        for route_method, pattern, route_handler in ROUTES:
            if method == route_method and (match := pattern.match(path)):
                handler, path_args = route_handler, match.groups()
                break

        if handler:
            status, data = handler(environ, *path_args)
            response_body = envelope(status, data)
        else:
            status, response_body = '404 Not Found', envelope('404 Not Found', message='Not Found')

    except Exception as e:
        db_session.rollback()
        status, response_body = handle_exception(e)
    finally:
        db_session.close()

    logger.debug(f"{environ.get('REQUEST_METHOD')} {environ.get('PATH_INFO')} -> {status}")
    start_response(status, [("Content-Type", "application/json; charset=utf-8")])
    return [response_body.encode("utf-8")]

# --------------------------------------------------------------------------
## 핸들러 함수: 사용자
# --------------------------------------------------------------------------

def list_users_handler(environ, *args):
    users = environ['services']['users'].list_users(get_query_param(environ, 'search'))
    return '200 OK', [u.to_dict() for u in users]

def get_user_handler(environ, user_id):
    return '200 OK', environ['services']['users'].get_user(user_id).to_dict()

def create_user_handler(environ, *args):
    data = get_request_data(environ)
    password = data.get('password')
    user = environ['services']['users'].create_user(
        username=data.get('username'),
        email=data.get('email'),
        password=password,
        confirm_password=data.get('confirmPassword', password),
        role=data.get('role'),
    )
    return '200 OK', user.to_dict()

def update_user_handler(environ, user_id):
    data = get_request_data(environ)
    patch = {k: data[k] for k in ('username', 'email', 'role', 'status') if k in data}
    user = environ['services']['users'].update_user(user_id, patch)
    return '200 OK', user.to_dict()

def delete_user_handler(environ, user_id):
    return '200 OK', environ['services']['users'].delete_user(user_id)

def reset_password_handler(environ, user_id):
    data = get_request_data(environ)
    password = data.get('password')
    environ['services']['users'].reset_password(user_id, password, data.get('confirmPassword', password))
    return '200 OK', True

# --------------------------------------------------------------------------
## 핸들러 함수: 역할
# --------------------------------------------------------------------------

def list_roles_handler(environ, *args):
    roles = environ['services']['roles'].list_roles(get_query_param(environ, 'search'))
    return '200 OK', [r.to_dict() for r in roles]

def get_role_handler(environ, role_id):
    return '200 OK', environ['services']['roles'].get_role(role_id).to_dict()

def create_role_handler(environ, *args):
    data = get_request_data(environ)
    role = environ['services']['roles'].create_role(
        name=data.get('name'),
        description=data.get('description'),
        permission_level_label=data.get('permissions', data.get('permissionLevelLabel', '')),
    )
    return '200 OK', role.to_dict()

def update_role_handler(environ, role_id):
    data = get_request_data(environ)
    patch = {k: data[k] for k in ('name', 'description') if k in data}
    for label_key in ('permissions', 'permissionLevelLabel'):
        if label_key in data:
            patch['permission_level_label'] = data[label_key]
    role = environ['services']['roles'].update_role(role_id, patch)
    return '200 OK', role.to_dict()

def delete_role_handler(environ, role_id):
    return '200 OK', environ['services']['roles'].delete_role(role_id)

# --------------------------------------------------------------------------
## 핸들러 함수: 권한
# --------------------------------------------------------------------------

def list_permission_groups_handler(environ, *args):
    groups = environ['services']['catalog'].list_permission_groups()
    return '200 OK', [g.to_dict() for g in groups]

def list_permissions_handler(environ, *args):
    permissions = environ['services']['catalog'].list_permissions()
    return '200 OK', [p.to_dict() for p in permissions]

def get_role_permissions_handler(environ, role_id):
    return '200 OK', environ['services']['bindings'].get_binding(role_id).to_dict()

def replace_role_permissions_handler(environ, role_id):
    data = get_request_data(environ)
    permission_ids = data.get('permissionIds')
    if not isinstance(permission_ids, list):
        raise ValidationError("'permissionIds' must be a list.")
    binding = environ['services']['bindings'].replace_binding(role_id, permission_ids, data.get('remark', ''))
    return '200 OK', binding.to_dict()

def check_role_permission_handler(environ, role_id):
    permission_code = get_query_param(environ, 'permissionCode')
    if not permission_code:
        raise ValidationError("Query parameter 'permissionCode' is required.")
    return '200 OK', environ['services']['bindings'].check_permission(role_id, permission_code).to_dict()

ROUTES = build_routes(settings.API_PREFIX)

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

def main():
    setup_logging('api', settings.LOG_LEVEL, settings.LOG_FILE)
    try:
        with make_server("", settings.SERVER_PORT, application) as httpd:
            logger.info(f"Serving RBAC admin API on port {settings.SERVER_PORT} (prefix {settings.API_PREFIX})...")
            httpd.serve_forever()
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
