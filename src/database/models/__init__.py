from .user import User
from .permission import UserPermission
from .blog import Blog
from .comment import Comment

__all__ = ["User", "UserPermission", "Blog", "Comment"]
