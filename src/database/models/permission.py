from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base

class UserPermission(Base):
    """
    사용자(User)에게 부여된 권한(capability) 하나를 나타내는 연관 테이블 모델입니다.
    (user_id, name)이 복합 기본 키이므로 같은 권한이 중복으로 저장될 수 없습니다.
    """
    __tablename__ = 'user_permissions'
    user_id = Column(Integer, ForeignKey('users.id'), primary_key=True)
    name = Column(String, primary_key=True)

    user = relationship("User", back_populates="permission_grants")
