from typing import Optional

from upi_tracker.config import REPOSITORY_BACKEND
from upi_tracker.database import build_engine
from upi_tracker.repository.base import Repository
from upi_tracker.repository.memory import InMemoryRepository
from upi_tracker.repository.sql import SQLRepository
from upi_tracker.utils.logger import logger

__all__ = ["Repository", "InMemoryRepository", "SQLRepository", "build_repository"]


def build_repository(backend: str = REPOSITORY_BACKEND, db_url: Optional[str] = None) -> Repository:
    """Escolhe o backend uma única vez, na inicialização do processo."""
    if backend == "memory":
        logger.warning("Repositório em memória: os dados não sobrevivem a um reinício")
        return InMemoryRepository()

    if backend == "database":
        repository = SQLRepository(build_engine(db_url))
        repository.init_db()
        return repository

    raise ValueError(f"REPOSITORY_BACKEND inválido: {backend!r} (use 'database' ou 'memory')")
