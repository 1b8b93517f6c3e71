from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from warehouse_api.core.config import settings

engine_kwargs: dict[str, object] = {
    # Detect and recover from stale pooled connections.
    "pool_pre_ping": True,
}

if settings.database_url.lower().startswith("sqlite"):
    # Request threads share the pool; the ledger serializes writers itself.
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    # Tune SQLAlchemy pool for networked databases (Postgres/MySQL).
    engine_kwargs.update(
        {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout_seconds,
            "pool_recycle": settings.db_pool_recycle_seconds,
        }
    )

engine = create_engine(settings.database_url, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
