# src/services/outcomes.py
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger(__name__)

DENIED_MESSAGE = "Not authorized."
UNAUTHENTICATED_MESSAGE = "Authentication required."


class OutcomeStatus(str, Enum):
    OK = "ok"
    UNAUTHENTICATED = "unauthenticated"
    DENIED = "denied"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    STORAGE_FAILURE = "storage_failure"


@dataclass(frozen=True)
class Outcome:
    """
    서비스 호출 결과. 성공과 예상 가능한 실패(인증/인가/없음/검증/저장소)를 구분합니다.

    호출자는 예외 내부를 들여다보지 않고 status만으로 사용자에게 보여줄 응답을 고를 수 있습니다.
    STORAGE_FAILURE일 때 error에는 저장소가 던진 원래 예외가 그대로 담깁니다.
    """
    status: OutcomeStatus
    value: Any = None
    message: str = ""
    errors: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(OutcomeStatus.OK, value=value)

    @classmethod
    def unauthenticated(cls, message: str = UNAUTHENTICATED_MESSAGE) -> "Outcome":
        return cls(OutcomeStatus.UNAUTHENTICATED, message=message)

    @classmethod
    def denied(cls) -> "Outcome":
        # 거부 사유나 대상의 존재 여부는 메시지에 담지 않는다
        return cls(OutcomeStatus.DENIED, message=DENIED_MESSAGE)

    @classmethod
    def not_found(cls, message: str) -> "Outcome":
        return cls(OutcomeStatus.NOT_FOUND, message=message)

    @classmethod
    def validation_failed(cls, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> "Outcome":
        return cls(OutcomeStatus.VALIDATION_FAILED, message=message, errors=errors or [])

    @classmethod
    def storage_failure(cls, error: BaseException) -> "Outcome":
        return cls(OutcomeStatus.STORAGE_FAILURE, message=str(error), error=error)


def storage_failures_as_outcome(func):
    """
    서비스 메서드 데코레이터. 저장소(SQLAlchemy) 오류를 STORAGE_FAILURE 결과로 바꿉니다.
    재시도는 하지 않으며, 원래 예외는 Outcome.error로 그대로 전달됩니다.
    실패한 트랜잭션은 서비스의 rollback_storage()로 되돌려 같은 세션을 계속 쓸 수 있게 합니다.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("storage_failure", operation=func.__name__, error=str(e))
            args[0].rollback_storage()
            return Outcome.storage_failure(e)
    return wrapper


def log_refusal(action: str, identity, outcome: Any, **context) -> None:
    """게이트가 작업을 거부했을 때 경고 로그를 남깁니다. 그 외 결과는 무시합니다."""
    if isinstance(outcome, Outcome) and outcome.status in (OutcomeStatus.DENIED, OutcomeStatus.UNAUTHENTICATED):
        logger.warning(
            "permission_denied",
            action=action,
            status=outcome.status.value,
            user_id=identity.id if identity is not None else None,
            **context,
        )
