# tests/repositories/test_sqlalchemy_repositories.py
import pytest
from sqlalchemy import text

from rbac_console.database import models
from rbac_console.database.db_init import ALL_PERMISSION_IDS, initialize_db
from rbac_console.entities import Role, User, UserStatus
from rbac_console.repositories.sqlalchemy.sqlalchemy_permission_repository import SqlalchemyPermissionRepository
from rbac_console.repositories.sqlalchemy.sqlalchemy_role_repository import SqlalchemyRoleRepository
from rbac_console.repositories.sqlalchemy.sqlalchemy_user_repository import (
    SqlalchemyUserRepository, hash_password
)
from rbac_console.services.exceptions import DataUnavailableError, UpdateFailedError

# ===================================================================
#  DB 초기화(db_init) 테스트
# ===================================================================
class TestInitializeDb:
    def test_seeds_catalog_roles_and_admin(self, seeded_session):
        """기본 권한 카탈로그, 역할 4개, admin 계정과 바인딩이 삽입되는지 테스트합니다."""
        assert seeded_session.query(models.PermissionGroup).count() == 6
        assert seeded_session.query(models.Permission).count() == len(ALL_PERMISSION_IDS)
        assert sorted(r.name for r in seeded_session.query(models.Role).all()) == ["admin", "analyst", "guest", "operator"]

        admin = seeded_session.query(models.User).filter(models.User.username == "admin").one()
        assert admin.role == "admin"
        assert admin.password_hash != "admin"

        admin_role = seeded_session.query(models.Role).filter(models.Role.name == "admin").one()
        assert len(admin_role.permission_bindings) == len(ALL_PERMISSION_IDS)

    def test_second_run_is_skipped(self, db_engine, seeded_session_factory):
        initialize_db(db_engine, seeded_session_factory)

        session = seeded_session_factory()
        try:
            assert session.query(models.Role).count() == 4
            assert session.query(models.User).count() == 1
        finally:
            session.close()

# ===================================================================
#  SqlalchemyUserRepository 테스트
# ===================================================================
class TestSqlalchemyUserRepository:
    def test_create_hashes_password(self, db_session):
        repo = SqlalchemyUserRepository(db_session)

        user = repo.create(User(username="alice", email="alice@example.com", role="guest"), "secret")

        assert user.id.startswith("user-")
        assert user.status is UserStatus.ACTIVE
        stored = db_session.query(models.User).filter(models.User.id == user.id).one()
        assert stored.password_hash == hash_password("secret")

    def test_update_status_and_lookup(self, db_session):
        repo = SqlalchemyUserRepository(db_session)
        user = repo.create(User(username="alice", email="alice@example.com", role="guest"), "secret")

        updated = repo.update(user.id, {"status": UserStatus.LOCKED, "email": "alice@corp.example"})

        assert updated.status is UserStatus.LOCKED
        assert repo.find_by_username("alice").email == "alice@corp.example"
        assert repo.update("user-404", {"email": "x"}) is None

    def test_set_password_and_delete(self, db_session):
        repo = SqlalchemyUserRepository(db_session)
        user = repo.create(User(username="alice", email="alice@example.com", role="guest"), "secret")

        assert repo.set_password(user.id, "n3w") is True
        assert db_session.query(models.User).filter(models.User.id == user.id).one().password_hash == hash_password("n3w")
        assert repo.delete(user.id) is True
        assert repo.delete(user.id) is False
        assert repo.set_password(user.id, "n3w") is False

    def test_legacy_status_label_is_read(self, db_session):
        db_session.add(models.User(id="user-legacy", username="li", email="li@example.com",
                                   password_hash="x", role="guest", status="锁定"))
        db_session.commit()

        assert SqlalchemyUserRepository(db_session).find_by_id("user-legacy").status is UserStatus.LOCKED

# ===================================================================
#  SqlalchemyRoleRepository 테스트
# ===================================================================
class TestSqlalchemyRoleRepository:
    def test_user_count_follows_role_name(self, seeded_session):
        """사용자 수는 users.role(역할 이름) 기준으로 계산되는지 테스트합니다."""
        user_repo = SqlalchemyUserRepository(seeded_session)
        user_repo.create(User(username="g1", email="g1@example.com", role="guest"), "pw")
        user_repo.create(User(username="g2", email="g2@example.com", role="guest"), "pw")
        role_repo = SqlalchemyRoleRepository(seeded_session)

        counts = {r.name: r.user_count for r in role_repo.list_all()}

        assert counts == {"admin": 1, "analyst": 0, "guest": 2, "operator": 0}
        assert role_repo.find_by_name("guest").user_count == 2

    def test_create_update_delete(self, db_session):
        repo = SqlalchemyRoleRepository(db_session)

        role = repo.create(Role(name="viewer", description="Read only"))
        renamed = repo.update(role.id, {"name": "reader", "permission_level_label": "Read-only"})

        assert role.id.startswith("role-")
        assert renamed.name == "reader"
        assert renamed.permission_level_label == "Read-only"
        assert repo.delete(role.id) is True
        assert repo.find_by_id(role.id) is None
        assert repo.delete(role.id) is False

    def test_delete_removes_bindings(self, seeded_session):
        role_repo = SqlalchemyRoleRepository(seeded_session)
        guest = role_repo.find_by_name("guest")

        role_repo.delete(guest.id)

        assert seeded_session.query(models.RolePermission).filter(models.RolePermission.role_id == guest.id).count() == 0

# ===================================================================
#  SqlalchemyPermissionRepository 테스트
# ===================================================================
class TestSqlalchemyPermissionRepository:
    def test_list_groups_in_display_order(self, seeded_session):
        groups = SqlalchemyPermissionRepository(seeded_session).list_groups()

        assert [g.id for g in groups] == ["database", "storage", "cluster", "monitoring", "security", "system"]
        assert [p.id for p in groups[0].permissions] == ["db_view", "db_create", "db_edit", "db_delete", "db_query"]
        assert groups[0].permissions[0].group_id == "database"

    def test_get_role_permissions(self, seeded_session):
        guest = SqlalchemyRoleRepository(seeded_session).find_by_name("guest")

        binding = SqlalchemyPermissionRepository(seeded_session).get_role_permissions(guest.id)

        assert binding.role_name == "guest"
        assert binding.granted_permissions == {"db_view", "monitor_view"}
        assert SqlalchemyPermissionRepository(seeded_session).get_role_permissions("role-404") is None

    def test_replace_is_full_replacement(self, seeded_session):
        """기존 바인딩과 겹치는 권한이 있어도 결과가 요청한 집합과 정확히 같은지 테스트합니다."""
        guest = SqlalchemyRoleRepository(seeded_session).find_by_name("guest")
        repo = SqlalchemyPermissionRepository(seeded_session)

        binding = repo.replace_role_permissions(guest.id, ["monitor_view", "storage_view", "storage_view"], "Permission update")

        assert binding.granted_permissions == {"monitor_view", "storage_view"}
        assert repo.get_role_permissions(guest.id).granted_permissions == {"monitor_view", "storage_view"}

    def test_replace_with_empty_set(self, seeded_session):
        guest = SqlalchemyRoleRepository(seeded_session).find_by_name("guest")
        repo = SqlalchemyPermissionRepository(seeded_session)

        assert repo.replace_role_permissions(guest.id, [], "Permission update").granted_permissions == set()

    def test_replace_unknown_role(self, seeded_session):
        assert SqlalchemyPermissionRepository(seeded_session).replace_role_permissions("role-404", ["db_view"], "x") is None

# ===================================================================
#  DB 오류 변환 테스트
# ===================================================================
class TestDatabaseErrors:
    def test_read_failure_becomes_data_unavailable(self, seeded_session):
        """테이블을 읽을 수 없으면 DataUnavailableError로 바뀌고 세션은 계속 쓸 수 있는지 테스트합니다."""
        seeded_session.execute(text("DROP TABLE users"))
        seeded_session.commit()

        with pytest.raises(DataUnavailableError):
            SqlalchemyUserRepository(seeded_session).list_all()
        assert SqlalchemyPermissionRepository(seeded_session).list_groups()

    def test_write_failure_becomes_update_failed(self, seeded_session):
        guest = SqlalchemyRoleRepository(seeded_session).find_by_name("guest")
        seeded_session.execute(text("DROP TABLE role_permissions"))
        seeded_session.commit()

        with pytest.raises(UpdateFailedError):
            SqlalchemyPermissionRepository(seeded_session).replace_role_permissions(guest.id, ["db_view"], "Permission update")
        assert SqlalchemyRoleRepository(seeded_session).find_by_id(guest.id).name == "guest"

    def test_duplicate_username_write_is_rolled_back(self, db_session):
        repo = SqlalchemyUserRepository(db_session)
        repo.create(User(username="alice", email="alice@example.com", role="guest"), "pw")

        with pytest.raises(UpdateFailedError):
            repo.create(User(username="alice", email="other@example.com", role="guest"), "pw")
        assert [u.email for u in repo.list_all()] == ["alice@example.com"]
