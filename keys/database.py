"""
Database setup and connection management for the key store.

This module handles:
- SQLAlchemy engine creation
- Session factory management
- Idempotent table creation
- Fallback to in-memory SQLite when the configured database is unreachable
"""

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import os
from typing import Optional
import logging

from keys.models import Base

logger = logging.getLogger(__name__)

import dotenv

dotenv.load_dotenv()

IN_MEMORY_URL = "sqlite:///:memory:"


class DatabaseConfig:
    """Configuration for database connections"""

    def __init__(self, connection_string: Optional[str] = None, echo: Optional[bool] = None):
        self.connection_string = connection_string or os.getenv(
            "DATABASE_URL",
            "sqlite:///./api_keys.db"
        )

        # Connection pooling (ignored for SQLite)
        self.pool_size = int(os.getenv("DB_POOL_SIZE", "5"))
        self.max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.pool_recycle = int(os.getenv("DB_POOL_RECYCLE", "1500"))

        # Echo SQL for debugging (set False in production)
        if echo is None:
            echo = os.getenv("DB_ECHO", "False").lower() == "true"
        self.echo = echo

        logger.info(f"Key database config: pool_size={self.pool_size}, max_overflow={self.max_overflow}")


def build_engine(connection_string: str, echo: bool = False, config: Optional[DatabaseConfig] = None) -> Engine:
    """Create an engine suited to the URL (SQLite needs thread sharing, in-memory needs one connection)."""
    if connection_string.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if connection_string in (IN_MEMORY_URL, "sqlite://"):
            kwargs["poolclass"] = StaticPool
        return create_engine(connection_string, echo=echo, **kwargs)

    return create_engine(
        connection_string,
        echo=echo,
        pool_size=config.pool_size if config else 5,
        max_overflow=config.max_overflow if config else 10,
        pool_recycle=config.pool_recycle if config else 1500,
        pool_pre_ping=True,
    )


class DatabaseManager:
    """
    Manages the engine and session factory for the api_keys table.

    Usage:
        DatabaseManager.initialize()
        store = SqlKeyStore(DatabaseManager.session_factory())
    """

    _engine = None
    _SessionLocal = None
    _db_type = None

    @classmethod
    def initialize(cls, config: DatabaseConfig = None):
        """
        Initialize database engine and session factory.

        Tries the configured database first and falls back to in-memory
        SQLite so the app can start even if the database is unreachable.
        """
        if cls._engine is not None:
            logger.warning("DatabaseManager already initialized")
            return

        if config is None:
            config = DatabaseConfig()

        logger.info("Initializing key database...")

        try:
            cls._engine = build_engine(config.connection_string, echo=config.echo, config=config)
            cls._db_type = cls._engine.dialect.name
            cls._SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=cls._engine,
                expire_on_commit=False
            )
            cls.create_tables()
            logger.info(f"✓ Key database initialized ({cls._db_type})")
            return
        except SQLAlchemyError as e:
            logger.error(f"❌ Database connection failed: {e}")
            logger.warning("⚠️  Falling back to SQLite in-memory...")

        cls._engine = build_engine(IN_MEMORY_URL, echo=config.echo)
        cls._db_type = "sqlite_memory"
        cls._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=cls._engine,
            expire_on_commit=False
        )
        cls.create_tables()
        logger.info("✓ Key database initialized successfully (SQLite in-memory)")

    @classmethod
    def create_tables(cls):
        """Create the api_keys table if it doesn't exist (IDEMPOTENT)"""
        if cls._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        existing_tables = set(inspect(cls._engine).get_table_names())
        for table_name, table in Base.metadata.tables.items():
            if table_name not in existing_tables:
                table.create(cls._engine, checkfirst=True)
                logger.info(f"✓ Created table: {table_name}")
            else:
                logger.info(f"✓ Table already exists: {table_name}")

    @classmethod
    def session_factory(cls) -> sessionmaker:
        if cls._SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return cls._SessionLocal

    @classmethod
    def health_check(cls) -> bool:
        """Check if database is healthy"""
        if cls._SessionLocal is None:
            return False

        session = cls._SessionLocal()
        try:
            session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"❌ Database health check failed: {e}")
            return False
        finally:
            session.close()

    @classmethod
    def dispose(cls):
        """Drop the engine (used on shutdown and between tests)."""
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None
        cls._SessionLocal = None
        cls._db_type = None

    @classmethod
    def is_using_fallback(cls) -> bool:
        return cls._db_type == "sqlite_memory"
