from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from ..database import Base

class Blog(Base):
    """
    사용자가 작성한 블로그 글을 나타냅니다.
    author_id는 생성 시점에 정해지며 이후 수정되지 않습니다.
    """
    __tablename__ = "blogs"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="", index=True)
    tags = Column(JSON, nullable=False, default=list)
    image_url = Column(String, nullable=True)
    published = Column(Boolean, nullable=False, default=False)
    likes_count = Column(Integer, nullable=False, default=0)
    views_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    author = relationship("User", back_populates="blogs")
    comments = relationship("Comment", back_populates="blog")
