from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    시스템에 로그인하고 블로그와 댓글을 작성할 수 있는 사용자를 나타냅니다.
    하나의 역할(role: ADMIN, EDITOR, USER)과 개별적으로 부여된 권한(permission) 집합을 가집니다.
    """
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="USER")

    permission_grants = relationship("UserPermission", back_populates="user", cascade="all, delete-orphan")
    blogs = relationship("Blog", back_populates="author")
    comments = relationship("Comment", back_populates="author")

    @property
    def permissions(self):
        return sorted(grant.name for grant in self.permission_grants)
