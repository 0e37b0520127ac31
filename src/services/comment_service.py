from typing import Dict, Any, Optional

import structlog

from src.database import models
from src.repositories.interfaces import IBlogRepository, ICommentRepository
from src.services.access import Identity
from src.services.exceptions import PayloadValidationError
from src.services.guard import guard_authenticated, guard_ownership
from src.services.outcomes import Outcome, log_refusal, storage_failures_as_outcome
from src.services.schemas import CommentCreate, parse_payload

logger = structlog.get_logger(__name__)


def comment_to_dict(comment: models.Comment) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "text": comment.text,
        "author_id": comment.author_id,
        "blog_id": comment.blog_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


class CommentService:
    def __init__(self, comment_repo: ICommentRepository, blog_repo: IBlogRepository, fetch_limit: int = 5):
        """
        CommentService를 초기화합니다.

        Args:
            comment_repo: 댓글 데이터에 접근하기 위한 리포지토리.
            blog_repo: 댓글이 달릴 블로그의 존재 여부를 확인하기 위한 리포지토리.
            fetch_limit: fetch_comments가 기본으로 돌려주는 최신 댓글 수.
        """
        self.comment_repo = comment_repo
        self.blog_repo = blog_repo
        self.fetch_limit = fetch_limit

    def rollback_storage(self) -> None:
        self.comment_repo.rollback()
        self.blog_repo.rollback()

    @storage_failures_as_outcome
    def add_comment(self, identity: Optional[Identity], blog_id: int, text: str) -> Outcome:
        """인증된 사용자라면 역할과 권한에 상관없이 댓글을 작성할 수 있습니다."""
        outcome = guard_authenticated(identity, lambda: self._add_comment(identity, blog_id, text))
        log_refusal("add_comment", identity, outcome, blog_id=blog_id)
        return outcome

    @storage_failures_as_outcome
    def delete_comment(self, identity: Optional[Identity], comment_id: int) -> Outcome:
        """
        댓글을 삭제합니다. 댓글 작성자 본인만 삭제할 수 있으며 ADMIN도 예외가 아닙니다.

        댓글이 없는 경우와 남의 댓글인 경우 모두 같은 DENIED 결과를 돌려주어,
        권한 없는 호출자에게 댓글의 존재 여부가 드러나지 않게 합니다.
        """
        if identity is None:
            outcome = Outcome.unauthenticated()
        else:
            comment = self.comment_repo.find_by_id(comment_id)
            owner_id = comment.author_id if comment else None
            outcome = guard_ownership(identity, owner_id, lambda: self._delete_comment(identity, comment))
        log_refusal("delete_comment", identity, outcome, comment_id=comment_id)
        return outcome

    @storage_failures_as_outcome
    def fetch_comments(self, blog_id: int, limit: Optional[int] = None) -> Outcome:
        """
        블로그 글의 댓글을 최신순으로 조회합니다.

        Args:
            blog_id: 블로그 글 ID.
            limit: 최대 개수. 없으면 fetch_limit(기본 5)을 사용합니다.
        """
        if not self.blog_repo.find_by_id(blog_id):
            return Outcome.not_found(f"Blog with id '{blog_id}' not found.")
        limit = self.fetch_limit if limit is None else max(0, limit)
        comments = self.comment_repo.list_recent_by_blog_id(blog_id, limit)
        return Outcome.success([comment_to_dict(c) for c in comments])

    def _add_comment(self, identity: Identity, blog_id: int, text: str) -> Outcome:
        try:
            data = parse_payload(CommentCreate, {"text": text})
            if not data.text:
                raise PayloadValidationError("Invalid payload.", errors=[{"field": "text", "message": "must not be empty"}])
        except PayloadValidationError as e:
            return Outcome.validation_failed(str(e), e.errors)

        if not self.blog_repo.find_by_id(blog_id):
            return Outcome.not_found(f"Blog with id '{blog_id}' not found.")

        new_comment = models.Comment(text=data.text, author_id=identity.id, blog_id=blog_id)
        created_comment = self.comment_repo.create(new_comment)
        logger.info("comment_added", comment_id=created_comment.id, blog_id=blog_id, author_id=identity.id)
        return Outcome.success(comment_to_dict(created_comment))

    def _delete_comment(self, identity: Identity, comment: models.Comment) -> Outcome:
        self.comment_repo.delete(comment)
        logger.info("comment_deleted", comment_id=comment.id, author_id=identity.id)
        return Outcome.success({"id": comment.id})
