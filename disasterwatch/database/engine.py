from sqlmodel import create_engine, SQLModel
from sqlalchemy.engine import Engine
import os

from disasterwatch.core.config import settings

# Local SQLite file holding the offline cache and the pending-action queue
DATABASE_URL = settings.LOCAL_DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    echo=True if os.getenv("DEBUG") else False,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

def create_db_and_tables(bind: Engine = engine):
    # Import models so their tables are registered with SQLModel
    from disasterwatch.models import offline  # noqa: F401
    SQLModel.metadata.create_all(bind)
