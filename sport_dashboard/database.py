from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from sport_dashboard.config import DATABASE_URL, STORAGE_BACKEND, JSON_STORAGE_PATH

connect_args = {}

if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False
elif DATABASE_URL.startswith("postgresql"):
    connect_args = {"sslmode": "require"}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_storage(db: Session = Depends(get_db)):
    # imported here, the storage module needs the models which need Base
    from sport_dashboard.services.storage_service import JsonStorage, SqlStorage

    if STORAGE_BACKEND == "json":
        return JsonStorage(JSON_STORAGE_PATH)
    return SqlStorage(db)
