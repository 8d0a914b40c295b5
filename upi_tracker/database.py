import os
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from upi_tracker.config import BASE_DIR


def build_engine(db_url: Optional[str] = None) -> Engine:
    db_url = db_url or os.getenv("DATABASE_URL")
    if db_url == "sqlite://":
        # Banco em memória compartilhado entre threads (testes/demonstração)
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if db_url:
        return create_engine(db_url, echo=False, pool_pre_ping=True)

    sqlite_file = BASE_DIR / "data.db"
    sqlite_file.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        f"sqlite:///{sqlite_file}", echo=False, connect_args={"check_same_thread": False}
    )


def init_db(engine: Engine) -> None:
    """Cria as tabelas caso ainda não existam."""
    from upi_tracker import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
