# src/services/guard.py
"""
변경 작업 앞에 놓이는 인가 게이트.

게이트는 판단만 하고 아무것도 저장하지 않습니다. 거부되면 작업(operation)을
호출하지 않고 Outcome을 돌려주며, 허용되면 작업의 반환값을 그대로 돌려줍니다.
작업이 던진 예외도 손대지 않고 그대로 전파됩니다.
"""
from typing import Callable, Iterable, Optional, TypeVar, Union

from src.services.access import CapabilityLike, Identity, Role, evaluate, evaluate_any, is_owner
from src.services.outcomes import Outcome

T = TypeVar("T")

Required = Union[CapabilityLike, Iterable[CapabilityLike]]


def _allowed(identity: Identity, required: Required) -> bool:
    if isinstance(required, str):
        return evaluate(identity, required)
    return evaluate_any(identity, required)


def guard(identity: Optional[Identity], required: Required, operation: Callable[[], T]) -> Union[T, Outcome]:
    """
    역할/권한 규칙으로 작업을 감쌉니다.

    Args:
        identity: 요청 주체. None이면 비인증.
        required: 요구 권한 하나, 또는 그중 하나만 있어도 되는 권한 목록.
        operation: 허용될 때만 호출되는 인자 없는 함수.
    """
    if identity is None:
        return Outcome.unauthenticated()
    if not _allowed(identity, required):
        return Outcome.denied()
    return operation()


def guard_authenticated(identity: Optional[Identity], operation: Callable[[], T]) -> Union[T, Outcome]:
    """역할/권한과 상관없이 인증된 주체이기만 하면 작업을 허용합니다."""
    if identity is None:
        return Outcome.unauthenticated()
    return operation()


def guard_role(identity: Optional[Identity], role: Role, operation: Callable[[], T]) -> Union[T, Outcome]:
    """특정 역할만 허용합니다. 권한 목록은 보지 않습니다."""
    if identity is None:
        return Outcome.unauthenticated()
    if identity.role != role:
        return Outcome.denied()
    return operation()


def guard_ownership(identity: Optional[Identity], owner_id: Optional[int], operation: Callable[[], T]) -> Union[T, Outcome]:
    """
    소유권 규칙으로 작업을 감쌉니다. identity.id == owner_id일 때만 허용하며,
    evaluate()나 역할(ADMIN 포함)은 전혀 고려하지 않습니다.
    owner_id가 None(대상 없음)이어도 소유자가 아닌 경우와 똑같이 DENIED를 돌려줍니다.
    """
    if identity is None:
        return Outcome.unauthenticated()
    if not is_owner(identity, owner_id):
        return Outcome.denied()
    return operation()
