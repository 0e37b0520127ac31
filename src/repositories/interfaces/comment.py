from abc import ABC, abstractmethod
from typing import List, Optional
from src.database import models

class ICommentRepository(ABC):
    @abstractmethod
    def create(self, comment_model: models.Comment) -> models.Comment:
        """새로운 댓글을 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, comment_id: int) -> Optional[models.Comment]:
        """고유 ID로 특정 댓글을 조회합니다."""
        pass

    @abstractmethod
    def list_recent_by_blog_id(self, blog_id: int, limit: int) -> List[models.Comment]:
        """특정 블로그 글의 댓글을 최신순으로 limit개까지 조회합니다."""
        pass

    @abstractmethod
    def delete(self, comment: models.Comment) -> bool:
        """특정 댓글을 데이터베이스에서 삭제합니다."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """실패한 트랜잭션을 되돌려 세션을 다시 쓸 수 있게 합니다."""
        pass
