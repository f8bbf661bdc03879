# eatery/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from eatery.domain.errors import TransactionFailure
from eatery.utils.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """
    Uchwyt do bazy: engine + fabryka sesji.
    Tworzony jawnie przy starcie procesu (lifespan) i zamykany przy shutdown,
    przekazywany dalej zamiast globalnego cache polaczenia.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_engine(url, future=True, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        # import modeli, zeby zarejestrowaly sie w Base.metadata
        import eatery.data.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Tables ready: {sorted(Base.metadata.tables.keys())}")

    def session(self) -> Session:
        return self.session_factory()

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Jawny zakres transakcji: commit na wyjsciu, rollback na kazdym wyjatku.
    Bledy SQLAlchemy nie wychodza poza core - zamieniane na TransactionFailure.
    """
    try:
        if session.in_transaction():
            # domykamy transakcje otwarta przez wczesniejsze odczyty (autobegin)
            session.commit()
        with session.begin():
            yield session
    except SQLAlchemyError as e:
        logger.error(f"Transaction aborted: {e}")
        raise TransactionFailure() from e
