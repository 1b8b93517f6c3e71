import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text


def _test_pg_url() -> str | None:
    return os.getenv("TEST_POSTGRES_DATABASE_URL")


@pytest.mark.integration
def test_postgres_connection_and_core_tables():
    url = _test_pg_url()
    if not url:
        pytest.skip("Set TEST_POSTGRES_DATABASE_URL to run Postgres integration tests.")

    engine = create_engine(url, pool_pre_ping=True)
    with engine.connect() as conn:
        assert conn.execute(text("SELECT 1")).scalar_one() == 1

    table_names = set(inspect(engine).get_table_names())
    assert "users" in table_names
    assert "products" in table_names
    assert "stock_movements" in table_names
    assert "warehouse_locations" in table_names


@pytest.mark.integration
def test_alembic_upgrade_downgrade_smoke():
    url = _test_pg_url()
    if not url:
        pytest.skip("Set TEST_POSTGRES_DATABASE_URL to run migration smoke tests.")
    if os.getenv("ALLOW_DESTRUCTIVE_MIGRATION_TESTS") != "1":
        pytest.skip("Set ALLOW_DESTRUCTIVE_MIGRATION_TESTS=1 for downgrade smoke test.")

    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))

    previous_database_url = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = url
    try:
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "base")
        command.upgrade(alembic_cfg, "head")
    finally:
        if previous_database_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = previous_database_url


@pytest.mark.integration
def test_concurrent_outs_on_postgres_keep_ledger_consistent():
    url = _test_pg_url()
    if not url:
        pytest.skip("Set TEST_POSTGRES_DATABASE_URL to run Postgres integration tests.")

    from concurrent.futures import ThreadPoolExecutor

    from sqlalchemy.orm import sessionmaker

    from warehouse_api.models.product import Product
    from warehouse_api.services import stock_ledger

    engine = create_engine(url, pool_pre_ping=True)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with session_local() as db:
        product = Product(sku=f"PG-{os.getpid()}", name="Postgres race product")
        db.add(product)
        db.commit()
        product_id = product.id
        stock_ledger.record_movement(db, product_id, "in", 20, actor="pg-test")

    def take_five(_):
        with session_local() as db:
            try:
                stock_ledger.record_movement(db, product_id, "out", 5, actor="pg-test")
                return True
            except stock_ledger.InsufficientStock:
                return False

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(take_five, range(8)))

    try:
        with session_local() as db:
            assert results.count(True) == 4
            assert stock_ledger.get_balance(db, product_id) == 0
            assert stock_ledger.ledger_sum(db, product_id) == 0
    finally:
        with session_local() as db:
            stock_ledger.delete_product(db, product_id, actor="pg-test")
