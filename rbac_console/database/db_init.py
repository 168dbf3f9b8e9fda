import logging
from datetime import datetime

from rbac_console.config import settings
from rbac_console.logging_config import setup_logging
from rbac_console.repositories.sqlalchemy.sqlalchemy_user_repository import hash_password
from .database import engine, SessionLocal, Base
from .models import *

logger = logging.getLogger(__name__)

# (id, 이름, 설명, [(권한 id, 이름, code, 설명), ...])
DEFAULT_PERMISSION_GROUPS = [
    ("database", "Database management", "Relational, time-series and vector database permissions", [
        ("db_view", "View databases", "database:view", "List and inspect databases"),
        ("db_create", "Create databases", "database:create", "Create new databases"),
        ("db_edit", "Edit databases", "database:edit", "Change database settings"),
        ("db_delete", "Delete databases", "database:delete", "Drop databases"),
        ("db_query", "Run queries", "database:query", "Execute statements in the SQL console"),
    ]),
    ("storage", "Storage management", "File and object storage permissions", [
        ("storage_view", "View storage", "storage:view", "Browse buckets and directories"),
        ("storage_upload", "Upload files", "storage:upload", "Upload files and objects"),
        ("storage_delete", "Delete files", "storage:delete", "Delete files and objects"),
    ]),
    ("cluster", "Cluster management", "Node and shard permissions", [
        ("cluster_view", "View nodes", "cluster:view", "Inspect nodes and shards"),
        ("cluster_manage", "Manage nodes", "cluster:manage", "Add, remove and restart nodes"),
    ]),
    ("monitoring", "Monitoring", "Performance monitoring and alerting", [
        ("monitor_view", "View metrics", "monitoring:view", "View performance dashboards"),
        ("alert_manage", "Manage alerts", "monitoring:alerts", "Create and acknowledge alert rules"),
    ]),
    ("security", "Security management", "User, role and permission administration", [
        ("user_manage", "Manage users", "security:users", "Create, edit, lock and delete users"),
        ("role_manage", "Manage roles", "security:roles", "Create, edit and delete roles"),
        ("permission_manage", "Manage permissions", "security:permissions", "Edit role permissions"),
    ]),
    ("system", "System settings", "System configuration and logs", [
        ("settings_edit", "Edit settings", "system:settings", "Change system settings"),
        ("logs_view", "View logs", "system:logs", "Read system logs"),
    ]),
]

ALL_PERMISSION_IDS = [p[0] for group in DEFAULT_PERMISSION_GROUPS for p in group[3]]
READ_ONLY_PERMISSION_IDS = ["db_view", "storage_view", "cluster_view", "monitor_view", "logs_view"]

# (이름, 설명, 권한 레이블, 부여할 권한 id 목록)
DEFAULT_ROLES = [
    ("admin", "System administrator with every permission", "All permissions", ALL_PERMISSION_IDS),
    ("operator", "Operator who runs most day-to-day tasks", "Read/write, no administration",
     [pid for pid in ALL_PERMISSION_IDS if pid not in ("user_manage", "role_manage", "permission_manage", "settings_edit")]),
    ("analyst", "Data analyst running queries and reports", "Read-only with query access",
     READ_ONLY_PERMISSION_IDS + ["db_query"]),
    ("guest", "Visitor with limited read access", "Limited read-only", ["db_view", "monitor_view"]),
]


def initialize_db(db_engine=None, session_factory=None):
    """
    DB와 테이블을 생성하고, 기본 데이터(역할, 권한 카탈로그, 바인딩, 관리자 계정)를 삽입합니다.
    SQLAlchemy 모델을 사용하여 모든 작업을 수행합니다.

    Args:
        db_engine: 테이블을 만들 엔진. 기본값은 설정의 DATABASE_URL 엔진.
        session_factory: 데이터를 삽입할 세션 팩토리. 기본값은 SessionLocal.
    """
    logger.info("DB 초기화 중 (SQLAlchemy 사용)...")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=db_engine or engine)
    logger.info("테이블 생성 완료.")

    db = (session_factory or SessionLocal)()
    try:
        # 기본 데이터가 이미 있는지 확인
        if db.query(Role).first():
            logger.info("기본 데이터가 이미 존재합니다. 초기화를 건너뜁니다.")
            return

        logger.info("기본 데이터 삽입 중...")

        # Permission catalog
        for group_position, (group_id, group_name, group_description, permissions) in enumerate(DEFAULT_PERMISSION_GROUPS):
            db.add(PermissionGroup(id=group_id, name=group_name, description=group_description, position=group_position))
            for position, (permission_id, name, code, description) in enumerate(permissions):
                db.add(Permission(
                    id=permission_id, name=name, code=code, description=description,
                    group_id=group_id, position=position
                ))

        # Roles
        roles = {}
        for name, description, label, _ in DEFAULT_ROLES:
            roles[name] = Role(name=name, description=description, permission_level_label=label)
            db.add(roles[name])

        # Admin user
        db.add(User(
            username='admin',
            email='admin@example.com',
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role='admin',
            status='Active',
            last_login=datetime.now().replace(microsecond=0),
        ))

        # 변경사항을 커밋하여 각 역할의 id를 할당받습니다.
        db.commit()

        # Role-Permission bindings
        for name, _, _, permission_ids in DEFAULT_ROLES:
            for permission_id in permission_ids:
                db.add(RolePermission(role_id=roles[name].id, permission_id=permission_id))

        db.commit()
        logger.info("DB 초기화 및 기본 데이터 삽입 완료.")

    except Exception:
        logger.exception("DB 초기화 중 오류 발생")
        db.rollback()
        raise
    finally:
        db.close()


def main():
    setup_logging('db-init', settings.LOG_LEVEL, settings.LOG_FILE)
    initialize_db()


if __name__ == '__main__':
    main()
