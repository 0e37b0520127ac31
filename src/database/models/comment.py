from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base

class Comment(Base):
    """
    블로그 글에 달린 댓글입니다. 항상 하나의 블로그와 하나의 작성자를 참조합니다.
    """
    __tablename__ = "comments"
    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)

    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    blog_id = Column(Integer, ForeignKey("blogs.id"), nullable=False, index=True)
    author = relationship("User", back_populates="comments")
    blog = relationship("Blog", back_populates="comments")
