# tests/database/test_db_init.py
from src.config import Settings
from src.database import models
from src.database.db_init import initialize_db
from src.services.identity_service import hash_password


def test_initialize_db_seeds_admin_once(engine, db_session):
    """기본 관리자 계정은 한 번만 생성되고, 다시 실행하면 건너뜁니다."""
    settings = Settings(admin_username="root", admin_password="s3cret")

    initialize_db(settings, engine)
    initialize_db(settings, engine)

    admins = db_session.query(models.User).filter_by(username="root").all()
    assert len(admins) == 1
    assert admins[0].role == "ADMIN"
    assert admins[0].password_hash == hash_password("s3cret")
