from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from asenso.config import settings

connect_args = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}
engine = create_engine(settings.DB_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

def init_db(bind=None):
    from asenso.db import models  # ensure models are imported
    models.Base.metadata.create_all(bind=bind or engine)
