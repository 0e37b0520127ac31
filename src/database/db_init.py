import structlog

from src.config import Settings, get_settings
from src.logging_config import configure_logging
from src.services.access import Role
from src.services.identity_service import hash_password
from .database import Base, create_db_engine, create_session_factory
from .models import User

logger = structlog.get_logger(__name__)


def initialize_db(settings: Settings, engine=None):
    """
    DB와 테이블을 생성하고, 기본 관리자 계정을 삽입합니다.
    SQLAlchemy 모델을 사용하여 모든 작업을 수행합니다.
    """
    if engine is None:
        engine = create_db_engine(settings.database_url, settings.database_echo)

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=engine)
    logger.info("tables_created")

    db = create_session_factory(engine)()
    try:
        # 기본 데이터가 이미 있는지 확인
        if db.query(User).filter(User.username == settings.admin_username).first():
            logger.info("seed_skipped", reason="admin user already exists")
            return

        admin_user = User(
            username=settings.admin_username,
            password_hash=hash_password(settings.admin_password),
            role=Role.ADMIN.value,
        )
        db.add(admin_user)
        db.commit()
        logger.info("admin_user_seeded", user_id=admin_user.id, username=admin_user.username)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == '__main__':
    settings = get_settings()
    configure_logging(settings)
    initialize_db(settings)
