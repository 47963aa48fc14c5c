from __future__ import annotations

import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine + session factory com ciclo de vida explícito.

    Criado no startup da aplicação (lifespan) e descartado no shutdown.
    Nenhum módulo deve manter uma instância global própria.
    """

    def __init__(self, url: str, *, echo: bool = False, pool_pre_ping: bool = True) -> None:
        self.url = url
        self._echo = echo
        self._pool_pre_ping = pool_pre_ping
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database não conectado; chame connect() antes.")
        return self._engine

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def connect(self) -> Engine:
        if self._engine is not None:
            return self._engine

        connect_args = {"check_same_thread": False} if self.is_sqlite else {}
        self._engine = create_engine(
            self.url,
            echo=self._echo,
            pool_pre_ping=self._pool_pre_ping,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("database connected dialect=%s", self._engine.dialect.name)
        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database não conectado; chame connect() antes.")
        return self._session_factory()

    def health_check(self) -> bool:
        if self._engine is None:
            return False
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("database health check failed")
            return False
        return True

    def dispose(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("database disconnected")


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
