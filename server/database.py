# server/database.py

import logging
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session

from core import config
from core.security import get_password_hash
from models import Base, Role, QueryType, User


logger = logging.getLogger(__name__)

ROLE_NAMES = ("ADMIN", "USER")
QUERY_TYPE_NAMES = ("PROMPT", "ANSWER")


def _engine_kwargs(url: str) -> dict:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    if parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return {"connect_args": {"check_same_thread": False}}


engine = create_engine(config.DATABASE_URL, **_engine_kwargs(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def seed(db: Session):
    """
    Inserts the fixed roles and query types if they are missing, and the
    bootstrap admin when ADMIN_USERNAME/ADMIN_PASSWORD are configured.
    """
    for name in ROLE_NAMES:
        if not db.query(Role).filter(Role.name == name).first():
            db.add(Role(name=name))
    for name in QUERY_TYPE_NAMES:
        if not db.query(QueryType).filter(QueryType.name == name).first():
            db.add(QueryType(name=name))
    db.flush()

    if config.ADMIN_USERNAME and config.ADMIN_PASSWORD:
        exists = db.query(User).filter(User.username == config.ADMIN_USERNAME).first()
        if not exists:
            admin_role = db.query(Role).filter(Role.name == "ADMIN").one()
            db.add(User(
                username=config.ADMIN_USERNAME,
                hashed_password=get_password_hash(config.ADMIN_PASSWORD),
                role_id=admin_role.id,
            ))
            logger.info("Created bootstrap admin '%s'", config.ADMIN_USERNAME)

    db.commit()


def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    db = Session(bind=bind)
    try:
        seed(db)
    finally:
        db.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
