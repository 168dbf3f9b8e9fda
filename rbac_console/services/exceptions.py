# rbac_console/services/exceptions.py

class RbacError(Exception):
    """RBAC 관리 코어에서 발생하는 모든 예상된 오류의 기반 클래스"""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)

# --- Validation Exceptions ---
class ValidationError(RbacError):
    """네트워크/DB 호출 전에 걸러지는 잘못된 입력 (필수 필드 누락, 비밀번호 불일치 등)"""
    pass

class UserCreationError(ValidationError):
    """사용자 생성 실패 시 (이름 중복 등)"""
    pass

class RoleCreationError(ValidationError):
    """역할 생성 실패 시 (이름 중복 등)"""
    pass

# --- Not Found Exceptions ---
class NotFoundError(RbacError):
    """대상 ID가 존재하지 않을 때"""
    pass

class UserNotFoundError(NotFoundError):
    """사용자를 찾을 수 없을 때"""
    pass

class RoleNotFoundError(NotFoundError):
    """역할을 찾을 수 없을 때"""
    pass

# --- Precondition Exceptions ---
class PreconditionFailedError(RbacError):
    """사전 조건을 만족하지 않아 명령을 수행할 수 없을 때"""
    pass

class RoleInUseError(PreconditionFailedError):
    """사용자가 배정된(userCount > 0) 역할을 삭제하려고 할 때"""
    pass

# --- Data Access Exceptions ---
class DataUnavailableError(RbacError):
    """조회 호출이 실패했을 때 (네트워크/서버 오류)"""
    pass

class UpdateFailedError(RbacError):
    """쓰기 호출이 실패했을 때"""
    pass

# --- Editor Exceptions ---
class EditorStateError(RbacError):
    """현재 편집 상태에서 허용되지 않는 전이를 요청했을 때"""
    pass

class UnsavedChangesError(EditorStateError):
    """저장하지 않은 권한 변경이 있는 상태에서 다른 역할을 선택하려고 할 때"""
    pass

class CommitInProgressError(EditorStateError):
    """권한 저장이 진행 중인데 다시 저장하거나 역할을 바꾸려고 할 때"""
    pass
