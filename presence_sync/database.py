"""Database connection and session management."""
import logging
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from presence_sync.config import Settings, get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(app_settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    # Determine if we need SSL (for Heroku or other cloud databases)
    connect_args = {}
    needs_ssl = (
        "heroku" in app_settings.database_url or
        "amazonaws" in app_settings.database_url or
        app_settings.environment == "production"
    )

    if needs_ssl and "sqlite" not in app_settings.database_url:
        connect_args["ssl"] = "require"
        logger.debug("SSL connection enabled (ssl=require)")
    else:
        logger.debug("SSL connection disabled (local development)")

    # One session per chunk worker plus the one paging through users
    pool_size = max(1, app_settings.db_pool_size, app_settings.presence_chunk_workers + 1)
    max_overflow = max(0, app_settings.db_max_overflow)

    try:
        new_engine = create_async_engine(
            app_settings.database_url,
            echo=app_settings.environment == "development",
            connect_args=connect_args,
            pool_pre_ping=True,  # Verify connections before use
            pool_recycle=3600,   # Recycle connections every hour
            pool_size=pool_size,
            max_overflow=max_overflow,
        )
        logger.debug("Database engine created successfully")
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise

    return new_engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the job; each chunk worker opens its own session."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
engine = build_engine(settings)

# Session factory
AsyncSessionLocal = build_session_factory(engine)

# Base class for models
Base = declarative_base()
