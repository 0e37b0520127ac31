from typing import Dict, Any, List, Optional

import structlog

from src.database import models
from src.repositories.interfaces import IBlogRepository, IUserRepository
from src.services.access import Capability, Identity
from src.services.exceptions import PayloadValidationError
from src.services.guard import guard
from src.services.outcomes import Outcome, log_refusal, storage_failures_as_outcome
from src.services.schemas import BlogCreate, BlogUpdate, parse_payload

logger = structlog.get_logger(__name__)

EXCERPT_LENGTH = 100


def blog_to_dict(blog: models.Blog) -> Dict[str, Any]:
    description = blog.description or ""
    return {
        "id": blog.id,
        "title": blog.title,
        "description": description,
        "excerpt": description[:EXCERPT_LENGTH],
        "category": blog.category,
        "tags": list(blog.tags or []),
        "image_url": blog.image_url,
        "published": bool(blog.published),
        "author_id": blog.author_id,
        "likes_count": blog.likes_count or 0,
        "views_count": blog.views_count or 0,
        "created_at": blog.created_at.isoformat() if blog.created_at else None,
        "updated_at": blog.updated_at.isoformat() if blog.updated_at else None,
    }


class BlogService:
    """블로그 글의 조회, 작성, 수정을 담당합니다. 작성/수정은 권한 게이트를 거칩니다."""

    def __init__(self, blog_repo: IBlogRepository, user_repo: IUserRepository,
                 title_min_length: int = 1, description_min_length: int = 1):
        """
        BlogService를 초기화합니다.

        Args:
            blog_repo: 블로그 데이터에 접근하기 위한 리포지토리.
            user_repo: 작성자 존재 여부를 확인하기 위한 리포지토리.
            title_min_length: 제목 최소 길이 (1 미만이어도 빈 제목은 허용하지 않음).
            description_min_length: 본문 최소 길이.
        """
        self.blog_repo = blog_repo
        self.user_repo = user_repo
        self.title_min_length = max(1, title_min_length)
        self.description_min_length = max(1, description_min_length)

    def rollback_storage(self) -> None:
        self.blog_repo.rollback()
        self.user_repo.rollback()

    @storage_failures_as_outcome
    def create_blog(self, identity: Optional[Identity], payload: Dict[str, Any]) -> Outcome:
        """
        새 블로그 글을 작성합니다. CREATE_BLOG 권한 또는 ADMIN 역할이 필요합니다.
        작성자(author_id)는 항상 요청 주체의 ID로 정해집니다.
        """
        outcome = guard(identity, Capability.CREATE_BLOG, lambda: self._create_blog(identity, payload))
        log_refusal("create_blog", identity, outcome)
        return outcome

    @storage_failures_as_outcome
    def update_blog(self, identity: Optional[Identity], blog_id: int, payload: Dict[str, Any]) -> Outcome:
        """
        블로그 글을 수정합니다. EDIT_BLOG 또는 UPDATE_BLOG 권한, 혹은 ADMIN 역할이 필요합니다.
        소유자 여부는 보지 않습니다. id와 author_id는 바뀌지 않습니다.
        """
        outcome = guard(
            identity,
            (Capability.EDIT_BLOG, Capability.UPDATE_BLOG),
            lambda: self._update_blog(identity, blog_id, payload),
        )
        log_refusal("update_blog", identity, outcome, blog_id=blog_id)
        return outcome

    @storage_failures_as_outcome
    def fetch_blogs(self, query: Optional[str] = None) -> Outcome:
        """모든 블로그 글을 조회합니다. query가 있으면 제목 또는 카테고리로 검색합니다."""
        query = (query or "").strip()
        blogs = self.blog_repo.search(query) if query else self.blog_repo.list_all()
        return Outcome.success([blog_to_dict(b) for b in blogs])

    @storage_failures_as_outcome
    def fetch_single_blog(self, blog_id: int) -> Outcome:
        blog = self.blog_repo.find_by_id(blog_id)
        if not blog:
            return Outcome.not_found(f"Blog with id '{blog_id}' not found.")
        return Outcome.success(blog_to_dict(blog))

    def _create_blog(self, identity: Identity, payload: Dict[str, Any]) -> Outcome:
        try:
            data = parse_payload(BlogCreate, payload)
            self._check_lengths(data.title, data.description)
        except PayloadValidationError as e:
            return Outcome.validation_failed(str(e), e.errors)

        if not self.user_repo.find_by_id(identity.id):
            return Outcome.not_found(f"User with id '{identity.id}' not found.")

        new_blog = models.Blog(**data.model_dump(), author_id=identity.id)
        created_blog = self.blog_repo.create(new_blog)
        logger.info("blog_created", blog_id=created_blog.id, author_id=identity.id)
        return Outcome.success(blog_to_dict(created_blog))

    def _update_blog(self, identity: Identity, blog_id: int, payload: Dict[str, Any]) -> Outcome:
        try:
            data = parse_payload(BlogUpdate, payload)
            self._check_lengths(data.title, data.description)
        except PayloadValidationError as e:
            return Outcome.validation_failed(str(e), e.errors)

        blog = self.blog_repo.find_by_id(blog_id)
        if not blog:
            return Outcome.not_found(f"Blog with id '{blog_id}' not found.")

        changes = data.model_dump(exclude_unset=True)
        # 명시적으로 null을 보낸 필수 필드는 무시
        for key in ("title", "description", "category", "tags", "published"):
            if key in changes and changes[key] is None:
                del changes[key]

        updated_blog = self.blog_repo.update(blog, changes)
        logger.info("blog_updated", blog_id=blog_id, editor_id=identity.id, fields=sorted(changes))
        return Outcome.success(blog_to_dict(updated_blog))

    def _check_lengths(self, title: Optional[str], description: Optional[str]) -> None:
        errors: List[Dict[str, Any]] = []
        if title is not None and len(title) < self.title_min_length:
            errors.append({"field": "title", "message": f"must be at least {self.title_min_length} characters"})
        if description is not None and len(description) < self.description_min_length:
            errors.append({"field": "description", "message": f"must be at least {self.description_min_length} characters"})
        if errors:
            raise PayloadValidationError("Invalid payload.", errors=errors)

