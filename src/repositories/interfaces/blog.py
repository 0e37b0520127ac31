from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from src.database import models

class IBlogRepository(ABC):
    @abstractmethod
    def create(self, blog_model: models.Blog) -> models.Blog:
        """새로운 블로그 글을 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, blog_id: int) -> Optional[models.Blog]:
        """고유 ID로 특정 블로그 글을 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.Blog]:
        """모든 블로그 글을 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def search(self, query: str) -> List[models.Blog]:
        """제목 또는 카테고리에 query가 (대소문자 구분 없이) 포함된 블로그 글을 조회합니다."""
        pass

    @abstractmethod
    def update(self, blog: models.Blog, data: Dict[str, Any]) -> models.Blog:
        """블로그 글의 필드를 data로 갱신합니다."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """실패한 트랜잭션을 되돌려 세션을 다시 쓸 수 있게 합니다."""
        pass
