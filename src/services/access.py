# src/services/access.py
"""
역할(Role)과 권한(Capability) 어휘, 그리고 요청마다 만들어지는 Identity를 정의합니다.

evaluate()는 모든 변경 작업의 인가 판단이 귀결되는 단 하나의 규칙입니다.
    - 역할이 ADMIN이면 항상 허용
    - 그 외에는 요구 권한이 identity.permissions에 있을 때만 허용
    - identity가 없으면(비인증) 항상 거부
is_owner()는 이와 독립적인 소유권 기반 규칙으로, 역할/권한을 전혀 보지 않습니다.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from src.services.exceptions import InvalidCapabilityError, InvalidRoleError


class Role(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    USER = "USER"

    @classmethod
    def parse(cls, value: Union["Role", str]) -> "Role":
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidRoleError(f"Unknown role '{value}'.")


class Capability(str, Enum):
    """미리 알려진 권한 목록. 관리자는 이 밖의 이름도 런타임에 만들어 부여할 수 있습니다."""
    CREATE_BLOG = "CREATE_BLOG"
    EDIT_BLOG = "EDIT_BLOG"
    UPDATE_BLOG = "UPDATE_BLOG"
    READ_BLOG = "READ_BLOG"


CapabilityLike = Union[Capability, str]

_CAPABILITY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


def capability_name(capability: CapabilityLike) -> str:
    return capability.value if isinstance(capability, Capability) else capability


def normalize_capability(capability: CapabilityLike) -> str:
    """
    권한 이름을 검증하고 정규화된 문자열로 반환합니다. 권한을 부여하는 경계에서만 사용합니다.

    Raises:
        InvalidCapabilityError: 비어 있거나 영문 대문자/숫자/밑줄 형식이 아닐 때.
    """
    if isinstance(capability, Capability):
        return capability.value
    if not isinstance(capability, str):
        raise InvalidCapabilityError("Capability must be a string.")
    name = capability.strip().upper()
    if not name:
        raise InvalidCapabilityError("Capability must not be empty.")
    if not _CAPABILITY_PATTERN.match(name):
        raise InvalidCapabilityError(f"Invalid capability name '{capability}'.")
    return name


def is_known_capability(name: str) -> bool:
    return name in Capability._value2member_map_


@dataclass(frozen=True)
class Identity:
    """인증된 요청 주체. 세션 제공자가 요청마다 새로 만들며, 코어에서는 절대 수정하지 않습니다."""
    id: int
    role: Role
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, id: int, role: Union[Role, str], permissions: Iterable[CapabilityLike] = ()) -> "Identity":
        return cls(
            id=id,
            role=Role.parse(role),
            permissions=frozenset(capability_name(p) for p in permissions),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def evaluate(identity: Optional[Identity], capability: CapabilityLike) -> bool:
    if identity is None:
        return False
    if identity.role == Role.ADMIN:
        return True
    return capability_name(capability) in identity.permissions


def evaluate_any(identity: Optional[Identity], capabilities: Iterable[CapabilityLike]) -> bool:
    """capabilities 중 하나라도 evaluate()를 통과하면 True."""
    return any(evaluate(identity, capability) for capability in capabilities)


def is_owner(identity: Optional[Identity], owner_id: Optional[int]) -> bool:
    if identity is None or owner_id is None:
        return False
    return identity.id == owner_id
