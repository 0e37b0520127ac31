import hashlib
import hmac
from typing import Dict, Any, Optional

import structlog

from src.database import models
from src.repositories.interfaces import IUserRepository
from src.services.access import Identity, Role, normalize_capability
from src.services.exceptions import UserNotFoundError, InvalidCapabilityError, InvalidRoleError, PayloadValidationError
from src.services.guard import guard_role
from src.services.outcomes import Outcome, log_refusal, storage_failures_as_outcome
from src.services.schemas import Credentials, UserCreate, parse_payload
from src.services.session import TokenSessionProvider

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


def user_to_dict(user: models.User) -> Dict[str, Any]:
    """비밀번호 해시를 제외한 사용자 정보."""
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "permissions": list(user.permissions),
    }


class IdentityService:
    """사용자, 역할, 권한 부여, 인증 등 신원 및 접근 관리 서비스를 제공합니다."""

    def __init__(self, user_repo: IUserRepository, session_provider: TokenSessionProvider, fetch_limit: int = 5):
        """
        IdentityService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            session_provider: 인증 성공 시 토큰을 발급할 세션 제공자.
            fetch_limit: fetch_users가 기본으로 돌려주는 사용자 수.
        """
        self.user_repo = user_repo
        self.session_provider = session_provider
        self.fetch_limit = fetch_limit

    def rollback_storage(self) -> None:
        self.user_repo.rollback()

    @storage_failures_as_outcome
    def create_user(self, username: str, password: str) -> Outcome:
        """
        새로운 사용자를 USER 역할로 생성합니다. 비밀번호는 해시하여 저장합니다.
        이름이나 비밀번호가 문자열이 아니거나 비어 있으면, 또는 동일한 이름의 사용자가 이미 있으면
        VALIDATION_FAILED를 돌려줍니다.
        """
        try:
            payload = parse_payload(UserCreate, {"username": username, "password": password})
        except PayloadValidationError as e:
            return Outcome.validation_failed(str(e), e.errors)
        username = payload.username
        if self.user_repo.find_by_username(username):
            return Outcome.validation_failed(
                f"User with username '{username}' already exists.",
                [{"field": "username", "message": "already exists"}],
            )

        new_user = models.User(username=username, password_hash=hash_password(payload.password), role=Role.USER.value)
        created_user = self.user_repo.create(new_user)
        logger.info("user_created", user_id=created_user.id)
        return Outcome.success(user_to_dict(created_user))

    @storage_failures_as_outcome
    def fetch_users(self, limit: Optional[int] = None) -> Outcome:
        """사용자 목록을 조회합니다. (비밀번호 제외, 기본 5명)"""
        limit = self.fetch_limit if limit is None else max(0, limit)
        users = self.user_repo.list_all(limit=limit)
        return Outcome.success([user_to_dict(u) for u in users])

    @storage_failures_as_outcome
    def get_user(self, user_id: int) -> Outcome:
        try:
            return Outcome.success(user_to_dict(self._find_user(user_id)))
        except UserNotFoundError as e:
            return Outcome.not_found(str(e))

    @storage_failures_as_outcome
    def assign_permission(self, identity: Optional[Identity], target_user_id: int, capability: str) -> Outcome:
        """
        사용자에게 권한을 부여합니다. ADMIN 역할만 호출할 수 있습니다.
        이미 가진 권한을 다시 부여하는 것은 오류가 아니라 아무 변화 없는 성공입니다.
        """
        outcome = guard_role(identity, Role.ADMIN, lambda: self._change_permission(identity, target_user_id, capability, grant=True))
        log_refusal("assign_permission", identity, outcome, target_user_id=target_user_id)
        return outcome

    @storage_failures_as_outcome
    def revoke_permission(self, identity: Optional[Identity], target_user_id: int, capability: str) -> Outcome:
        """사용자의 권한을 회수합니다. ADMIN 역할만 호출할 수 있으며, 없는 권한 회수는 성공으로 처리합니다."""
        outcome = guard_role(identity, Role.ADMIN, lambda: self._change_permission(identity, target_user_id, capability, grant=False))
        log_refusal("revoke_permission", identity, outcome, target_user_id=target_user_id)
        return outcome

    @storage_failures_as_outcome
    def change_role(self, identity: Optional[Identity], target_user_id: int, role: str) -> Outcome:
        """사용자의 역할을 변경합니다. ADMIN 역할만 호출할 수 있습니다."""
        outcome = guard_role(identity, Role.ADMIN, lambda: self._change_role(identity, target_user_id, role))
        log_refusal("change_role", identity, outcome, target_user_id=target_user_id)
        return outcome

    @storage_failures_as_outcome
    def authenticate(self, username: str, password: str) -> Outcome:
        """
        자격증명을 검증하고, 성공 시 사용자 ID가 담긴 서명된 토큰을 발급합니다.
        실패 이유(없는 사용자/틀린 비밀번호)는 구분하지 않습니다.
        """
        try:
            credentials = parse_payload(Credentials, {"username": username, "password": password})
        except PayloadValidationError as e:
            return Outcome.validation_failed(str(e), e.errors)

        user = self.user_repo.find_by_username(credentials.username)
        if not user or not hmac.compare_digest(user.password_hash, hash_password(credentials.password)):
            logger.info("authentication_failed", username=credentials.username)
            return Outcome.unauthenticated("Invalid username or password.")

        token = self.session_provider.issue_token(user)
        logger.info("token_issued", user_id=user.id)
        return Outcome.success(token)

    def _find_user(self, user_id: int) -> models.User:
        """
        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    def _change_permission(self, identity: Identity, target_user_id: int, capability: str, grant: bool) -> Outcome:
        try:
            name = normalize_capability(capability)
        except InvalidCapabilityError as e:
            return Outcome.validation_failed(str(e), [{"field": "capability", "message": str(e)}])
        try:
            user = self._find_user(target_user_id)
        except UserNotFoundError as e:
            return Outcome.not_found(str(e))

        if grant:
            changed = self.user_repo.add_permission(user, name)
            event = "permission_assigned" if changed else "permission_already_held"
        else:
            changed = self.user_repo.remove_permission(user, name)
            event = "permission_revoked" if changed else "permission_not_held"
        logger.info(event, admin_id=identity.id, target_user_id=target_user_id, capability=name)
        return Outcome.success(user_to_dict(user))

    def _change_role(self, identity: Identity, target_user_id: int, role: str) -> Outcome:
        try:
            new_role = Role.parse(role)
            user = self._find_user(target_user_id)
        except InvalidRoleError as e:
            return Outcome.validation_failed(str(e), [{"field": "role", "message": str(e)}])
        except UserNotFoundError as e:
            return Outcome.not_found(str(e))

        updated_user = self.user_repo.update_role(user, new_role.value)
        logger.info("role_changed", admin_id=identity.id, target_user_id=target_user_id, role=new_role.value)
        return Outcome.success(user_to_dict(updated_user))
