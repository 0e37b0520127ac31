# src/services/session.py
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import structlog
from jose import JWTError, jwt

from src.repositories.interfaces import IUserRepository
from src.services.access import Identity
from src.services.exceptions import TokenInvalidError, InvalidRoleError

logger = structlog.get_logger(__name__)


class ISessionProvider(ABC):
    @abstractmethod
    def get_identity(self, request_context: Dict[str, Any]) -> Optional[Identity]:
        """요청 컨텍스트에서 인증된 Identity를 만들어 반환합니다. 인증되지 않았으면 None."""
        pass


class TokenSessionProvider(ISessionProvider):
    """
    서명된 JWT(HS256)로 요청 주체를 식별하는 세션 제공자입니다.

    토큰에는 사용자 ID(sub)만 담깁니다. 역할과 권한은 요청마다 저장소에서 다시 읽으므로,
    권한 회수나 역할 변경은 이미 발급된 토큰에도 바로 반영됩니다.
    """

    def __init__(self, secret_key: str, user_repo: IUserRepository, algorithm: str = "HS256", ttl_minutes: int = 60):
        self.secret_key = secret_key
        self.user_repo = user_repo
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=ttl_minutes)

    def issue_token(self, user) -> Dict[str, str]:
        """
        사용자 모델로부터 토큰을 발급합니다.

        Returns:
            토큰 문자열과 만료 시각(ISO 8601)을 담은 딕셔너리.
        """
        expires_at = datetime.now(timezone.utc) + self.ttl
        claims = {"sub": str(user.id), "exp": expires_at}
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return {"token": token, "expires_at": expires_at.isoformat()}

    def decode_token(self, token: str) -> int:
        """
        토큰을 검증하고 사용자 ID를 반환합니다.

        Raises:
            TokenInvalidError: 서명이 틀렸거나 만료되었거나 클레임이 올바르지 않을 때.
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise TokenInvalidError(f"Token is invalid: {e}")

        try:
            return int(claims["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise TokenInvalidError(f"Token claims are malformed: {e}")

    def get_identity(self, request_context: Dict[str, Any]) -> Optional[Identity]:
        token = self._extract_token(request_context)
        if not token:
            return None
        try:
            user_id = self.decode_token(token)
        except TokenInvalidError as e:
            logger.info("token_rejected", reason=str(e))
            return None

        user = self.user_repo.find_by_id(user_id)
        if not user:
            logger.info("token_rejected", reason="user no longer exists", user_id=user_id)
            return None
        try:
            return Identity.of(user.id, user.role, user.permissions)
        except InvalidRoleError as e:
            logger.warning("token_rejected", reason=str(e), user_id=user_id)
            return None

    @staticmethod
    def _extract_token(request_context: Dict[str, Any]) -> Optional[str]:
        token = request_context.get("HTTP_X_AUTH_TOKEN")
        if token:
            return token
        authorization = request_context.get("HTTP_AUTHORIZATION", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return None
