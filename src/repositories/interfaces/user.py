from abc import ABC, abstractmethod
from typing import List, Optional
from src.database import models

class IUserRepository(ABC):
    @abstractmethod
    def create(self, user_model: models.User) -> models.User:
        """새로운 사용자를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[models.User]:
        """고유 ID로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[models.User]:
        """사용자 이름으로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def list_all(self, limit: Optional[int] = None) -> List[models.User]:
        """사용자 목록을 조회합니다. limit이 주어지면 그 수만큼만 반환합니다."""
        pass

    @abstractmethod
    def update_role(self, user: models.User, role: str) -> models.User:
        """사용자의 역할을 변경합니다."""
        pass

    @abstractmethod
    def add_permission(self, user: models.User, name: str) -> bool:
        """
        사용자에게 권한을 추가합니다.
        이미 가지고 있는 권한이면 아무것도 하지 않고 False를 반환합니다.
        """
        pass

    @abstractmethod
    def remove_permission(self, user: models.User, name: str) -> bool:
        """사용자의 권한을 회수합니다. 가지고 있지 않았으면 False를 반환합니다."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """실패한 트랜잭션을 되돌려 세션을 다시 쓸 수 있게 합니다."""
        pass
