from .sqlalchemy_user_repository import SqlalchemyUserRepository
from .sqlalchemy_blog_repository import SqlalchemyBlogRepository
from .sqlalchemy_comment_repository import SqlalchemyCommentRepository

__all__ = ["SqlalchemyUserRepository", "SqlalchemyBlogRepository", "SqlalchemyCommentRepository"]
