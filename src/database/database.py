from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# 모든 모델 클래스가 상속받을 Base 클래스
# 이 클래스를 상속받아 모델을 정의하면, SQLAlchemy가 테이블을 인식합니다.
Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False):
    """
    데이터베이스 URL로 SQLAlchemy 엔진을 생성합니다.

    SQLite에서는 여러 스레드에서 같은 연결을 쓰도록 check_same_thread를 끄고,
    인메모리 DB는 모든 세션이 하나의 연결을 공유해야 하므로 StaticPool을 사용합니다.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, **kwargs)


def create_session_factory(engine):
    """
    세션 팩토리를 생성합니다.
    autocommit=False, autoflush=False로 설정하여, 명시적으로 commit을 호출해야 DB에 반영됩니다.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
