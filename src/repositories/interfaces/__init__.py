from .user import IUserRepository
from .blog import IBlogRepository
from .comment import ICommentRepository

__all__ = ["IUserRepository", "IBlogRepository", "ICommentRepository"]
