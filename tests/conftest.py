# tests/conftest.py
import pytest

from src.database import models
from src.database.database import Base, create_db_engine, create_session_factory
from src.services.identity_service import hash_password

# ===================================================================
#  인메모리 SQLite 기반 공용 Fixture
# ===================================================================

@pytest.fixture
def engine():
    """테스트마다 새 인메모리 SQLite 엔진을 만들고 테이블을 생성합니다."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def make_user(db_session):
    """역할과 권한을 지정해 사용자를 DB에 바로 만드는 헬퍼."""
    def _make_user(username, role="USER", permissions=(), password="password123"):
        user = models.User(username=username, password_hash=hash_password(password), role=role)
        db_session.add(user)
        db_session.commit()
        for name in permissions:
            db_session.add(models.UserPermission(user_id=user.id, name=name))
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user
