from pathlib import Path

from sqlalchemy import inspect


def test_init_db_creates_tables(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "nested" / "orderbridge_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("ORDERBRIDGE_DB_AUTO_CREATE", "true")

    from services.api.app.db.database import get_engine
    from services.api.app.db.init_db import init_db

    init_db()

    inspector = inspect(get_engine())
    tables = set(inspector.get_table_names())

    assert {"carts", "products", "items", "orders", "order_workflows"} <= tables


def test_init_db_respects_auto_create_flag(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "orderbridge_disabled.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("ORDERBRIDGE_DB_AUTO_CREATE", "false")

    from services.api.app.db.init_db import init_db

    init_db()

    assert not db_path.exists()
