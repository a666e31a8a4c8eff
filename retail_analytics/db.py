# retail_analytics/db.py
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from retail_analytics.config import config as default_config
from retail_analytics.exceptions import DatabaseError
from retail_analytics.models import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseConnection:
    """Database connection handler built from an explicit configuration."""

    def __init__(self, settings=None, url=None):
        """Initialize database connection.

        Args:
            settings: Config instance; the module default is used when omitted
            url: Optional SQLAlchemy URL overriding the configured one
        """
        self.settings = settings or default_config
        self.url = url or self.settings.db_url

        try:
            self._engine = create_engine(
                self.url,
                echo=self.settings.get_boolean('DATABASE', 'echo', False)
            )
        except Exception as e:
            raise DatabaseError(f"Failed to initialize database connection: {str(e)}")

        if self._engine.dialect.name == 'sqlite':
            event.listen(self._engine, 'connect', _enable_sqlite_foreign_keys)

        self._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self._engine
        )

    @property
    def engine(self):
        """Get SQLAlchemy engine."""
        return self._engine

    def test_connection(self):
        """Run a trivial query against the database."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            raise DatabaseError(f"Database connection test failed: {str(e)}")

    @contextmanager
    def session_scope(self) -> Session:
        """Provide transaction scope for database operations."""
        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        return self._SessionLocal()

    def create_all_tables(self):
        """Create every table that does not exist yet."""
        Base.metadata.create_all(bind=self._engine)

    def drop_all_tables(self):
        Base.metadata.drop_all(bind=self._engine)

    def dispose(self):
        self._engine.dispose()
