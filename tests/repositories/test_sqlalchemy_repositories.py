# tests/repositories/test_sqlalchemy_repositories.py
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.database import models
from src.repositories.sqlalchemy import (
    SqlalchemyBlogRepository, SqlalchemyCommentRepository, SqlalchemyUserRepository
)

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def user_repo(db_session) -> SqlalchemyUserRepository:
    return SqlalchemyUserRepository(db_session)

@pytest.fixture
def blog_repo(db_session) -> SqlalchemyBlogRepository:
    return SqlalchemyBlogRepository(db_session)

@pytest.fixture
def comment_repo(db_session) -> SqlalchemyCommentRepository:
    return SqlalchemyCommentRepository(db_session)

@pytest.fixture
def author(make_user) -> models.User:
    return make_user("author")

def new_blog(author, title, category, description="body"):
    return models.Blog(title=title, description=description, category=category, author_id=author.id)

# ===================================================================
#  블로그 리포지토리 테스트
# ===================================================================
class TestBlogRepository:
    def test_create_sets_defaults(self, blog_repo, author):
        blog = blog_repo.create(new_blog(author, "Hello", "general"))

        assert blog.id is not None
        assert blog.tags == []
        assert blog.published is False
        assert blog.likes_count == 0 and blog.views_count == 0
        assert blog.created_at is not None

    def test_search_is_case_insensitive_on_category(self, blog_repo, author):
        """검색어 "TECH"는 카테고리가 "technology"인 글을 찾습니다."""
        tech = blog_repo.create(new_blog(author, "Python tips", "technology"))
        blog_repo.create(new_blog(author, "Banana bread", "cooking"))

        results = blog_repo.search("TECH")

        assert [b.id for b in results] == [tech.id]

    def test_search_matches_title_or_category(self, blog_repo, author):
        by_title = blog_repo.create(new_blog(author, "Cooking with Python", "misc"))
        by_category = blog_repo.create(new_blog(author, "Soup", "COOKING"))
        blog_repo.create(new_blog(author, "Travel diary", "travel"))

        results = blog_repo.search("cook")

        assert {b.id for b in results} == {by_title.id, by_category.id}

    def test_search_does_not_match_description(self, blog_repo, author):
        blog_repo.create(new_blog(author, "Title", "category", description="technology inside"))
        assert blog_repo.search("technology") == []

    def test_search_treats_wildcards_literally(self, blog_repo, author):
        blog_repo.create(new_blog(author, "100% pure", "misc"))
        blog_repo.create(new_blog(author, "1000 pure", "misc"))

        assert [b.title for b in blog_repo.search("0%")] == ["100% pure"]
        assert blog_repo.search("_") == []

    def test_update(self, blog_repo, author):
        blog = blog_repo.create(new_blog(author, "Old", "misc"))

        updated = blog_repo.update(blog, {"title": "New", "tags": ["a", "b"]})

        assert updated.title == "New"
        assert blog_repo.find_by_id(blog.id).tags == ["a", "b"]

# ===================================================================
#  사용자/권한 리포지토리 테스트
# ===================================================================
class TestUserRepository:
    def test_add_permission_is_idempotent(self, user_repo, db_session, author):
        """같은 권한을 두 번 추가해도 한 행만 저장됩니다."""
        assert user_repo.add_permission(author, "CREATE_BLOG") is True
        assert user_repo.add_permission(author, "CREATE_BLOG") is False

        rows = db_session.query(models.UserPermission).filter_by(user_id=author.id).all()
        assert [r.name for r in rows] == ["CREATE_BLOG"]
        assert author.permissions == ["CREATE_BLOG"]

    def test_add_permission_lost_race_is_reported_as_already_held(self):
        """확인 직후 다른 요청이 같은 권한을 먼저 저장하면, 오류 대신 False를 돌려주고 롤백합니다."""
        # === Arrange ===
        db = MagicMock(spec=Session)
        db.query.return_value.filter_by.return_value.first.return_value = None
        db.commit.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        repo = SqlalchemyUserRepository(db)

        # === Act ===
        added = repo.add_permission(models.User(id=3, username="racer"), "CREATE_BLOG")

        # === Assert ===
        assert added is False
        db.rollback.assert_called_once_with()
        db.refresh.assert_not_called()

    def test_rollback_makes_session_usable_after_failed_commit(self, user_repo, author):
        with pytest.raises(IntegrityError):
            user_repo.create(models.User(username="author", password_hash="x"))

        user_repo.rollback()

        assert user_repo.find_by_username("author").id == author.id

    def test_remove_permission(self, user_repo, author):
        user_repo.add_permission(author, "EDIT_BLOG")

        assert user_repo.remove_permission(author, "EDIT_BLOG") is True
        assert user_repo.remove_permission(author, "EDIT_BLOG") is False
        assert author.permissions == []

    def test_list_all_with_limit(self, user_repo, make_user):
        for name in ["f", "e", "d", "c", "b", "a"]:
            make_user(name)

        users = user_repo.list_all(limit=5)

        assert [u.username for u in users] == ["a", "b", "c", "d", "e"]

    def test_update_role(self, user_repo, author):
        assert user_repo.update_role(author, "EDITOR").role == "EDITOR"

# ===================================================================
#  댓글 리포지토리 테스트
# ===================================================================
class TestCommentRepository:
    def test_list_recent_by_blog_id(self, comment_repo, blog_repo, author):
        """최신 댓글부터 limit개만 반환하고, 다른 글의 댓글은 섞이지 않습니다."""
        blog = blog_repo.create(new_blog(author, "A", "misc"))
        other = blog_repo.create(new_blog(author, "B", "misc"))
        created = [
            comment_repo.create(models.Comment(text=f"c{i}", author_id=author.id, blog_id=blog.id))
            for i in range(7)
        ]
        comment_repo.create(models.Comment(text="elsewhere", author_id=author.id, blog_id=other.id))

        recent = comment_repo.list_recent_by_blog_id(blog.id, 5)

        assert [c.id for c in recent] == [c.id for c in reversed(created)][:5]

    def test_delete(self, comment_repo, blog_repo, author):
        blog = blog_repo.create(new_blog(author, "A", "misc"))
        comment = comment_repo.create(models.Comment(text="hi", author_id=author.id, blog_id=blog.id))

        assert comment_repo.delete(comment) is True
        assert comment_repo.find_by_id(comment.id) is None
