import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session

from aiteken import database
from aiteken.config import Settings
from aiteken.database import build_engine, ensure_database, init_db
from aiteken.models import Budget, Category, Expense, PaymentMethod, User
from aiteken.models.timestamps import _maintain_updated_at


TABLES = {"Users", "Categories", "PaymentMethods", "Expenses", "Budgets"}


def test_init_db_creates_all_tables(engine):
    report = init_db(engine)
    assert report == {name: "created" for name in TABLES}
    assert set(inspect(engine).get_table_names()) == TABLES


def test_init_db_creates_parents_first(engine):
    order = list(init_db(engine))
    assert order[0] == "Users"
    assert order.index("Categories") < order.index("Expenses")
    assert order.index("Categories") < order.index("Budgets")


def test_init_db_is_idempotent(engine):
    init_db(engine)
    report = init_db(engine)
    assert report == {name: "exists" for name in TABLES}
    assert sorted(inspect(engine).get_table_names()) == sorted(TABLES)


def test_email_is_indexed_but_not_unique(engine):
    init_db(engine)
    indexes = inspect(engine).get_indexes("Users")
    email_indexes = [ix for ix in indexes if ix["column_names"] == ["email"]]
    assert len(email_indexes) == 1
    assert not email_indexes[0]["unique"]


def test_foreign_keys_reject_orphans(engine):
    init_db(engine)
    with Session(engine) as session:
        session.add(Category(user_id=999, category_name="Food"))
        with pytest.raises(IntegrityError):
            session.commit()


def test_rows_link_back_to_user(engine):
    init_db(engine)
    with Session(engine) as session:
        user = User(username="alice", email="alice@example.com", password_hash="x")
        session.add(user)
        session.commit()
        session.refresh(user)

        category = Category(user_id=user.user_id, category_name="Food")
        method = PaymentMethod(user_id=user.user_id, payment_method_name="Card")
        session.add(category)
        session.add(method)
        session.commit()
        session.refresh(category)

        session.add(
            Expense(
                user_id=user.user_id,
                category_id=category.category_id,
                amount=Decimal("12.50"),
                date=dt.date(2024, 5, 1),
                description="Lunch",
            )
        )
        session.add(
            Budget(
                user_id=user.user_id,
                category_id=category.category_id,
                amount=Decimal("300.00"),
                start_date=dt.date(2024, 5, 1),
                end_date=dt.date(2024, 5, 31),
            )
        )
        session.commit()

        assert session.get(Expense, 1).amount == Decimal("12.50")
        assert session.get(Budget, 1).end_date == dt.date(2024, 5, 31)


def test_failed_parent_skips_dependants(engine, monkeypatch):
    real_inspect = database.inspect

    class _Inspector:
        def __init__(self, conn):
            self._inspector = real_inspect(conn)

        def has_table(self, name):
            if name == "Users":
                raise OperationalError("CREATE TABLE Users", {}, Exception("disk full"))
            return self._inspector.has_table(name)

    monkeypatch.setattr(database, "inspect", _Inspector)
    report = init_db(engine)

    assert report["Users"] == "failed"
    assert {report[name] for name in TABLES - {"Users"}} == {"skipped"}


def test_unreachable_database_returns_empty_report(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'missing' / 'nested' / 'x.db'}")
    engine = build_engine(settings.sqlalchemy_url, settings)
    try:
        assert init_db(engine) == {}
    finally:
        engine.dispose()


def test_ensure_database_issues_create_for_mysql(monkeypatch):
    issued = []
    urls = []

    class _Conn:
        def exec_driver_sql(self, statement):
            issued.append(statement)

    class _Begin:
        def __enter__(self):
            return _Conn()

        def __exit__(self, *exc):
            return False

    class _Engine:
        def begin(self):
            return _Begin()

        def dispose(self):
            issued.append("dispose")

    def _create_engine(url, **kwargs):
        urls.append(url)
        return _Engine()

    monkeypatch.setattr(database, "create_engine", _create_engine)
    ensure_database("mysql+pymysql://root:pw@db.local:3307/aiteken_db?charset=utf8mb4")

    assert urls[0].database is None
    assert urls[0].host == "db.local"
    assert urls[0].port == 3307
    assert urls[0].username == "root"
    assert urls[0].password == "pw"
    assert urls[0].query == {"charset": "utf8mb4"}
    assert issued == ["CREATE DATABASE IF NOT EXISTS `aiteken_db`", "dispose"]


def test_ensure_database_skips_sqlite(monkeypatch):
    def _create_engine(url, **kwargs):
        raise AssertionError("no server connection expected")

    monkeypatch.setattr(database, "create_engine", _create_engine)
    ensure_database("sqlite:///ignored.db")


def test_updated_at_is_refreshed_by_plain_sql(engine):
    init_db(engine)
    with engine.begin() as conn:
        conn.exec_driver_sql(
            'INSERT INTO "Users" (username, email, password_hash) VALUES (\'a\', \'a@x\', \'h\')'
        )
        conn.exec_driver_sql('UPDATE "Users" SET updated_at = \'2000-01-01 00:00:00\'')
        conn.exec_driver_sql('UPDATE "Users" SET username = \'renamed\'')
        stamp = conn.exec_driver_sql('SELECT updated_at FROM "Users"').scalar()

    assert not str(stamp).startswith("2000-01-01")


def test_every_table_gets_an_update_trigger(engine):
    init_db(engine)
    with engine.connect() as conn:
        triggers = {
            row[0]
            for row in conn.exec_driver_sql(
                "SELECT name FROM sqlite_master WHERE type = 'trigger'"
            )
        }
    assert triggers == {f"{name}_updated_at" for name in TABLES}


def test_mysql_tables_get_on_update_clause():
    issued = []

    class _Dialect:
        name = "mysql"

    class _Conn:
        dialect = _Dialect()

        def exec_driver_sql(self, statement):
            issued.append(statement)

    _maintain_updated_at(User.__table__, _Conn())

    assert issued == [
        "ALTER TABLE `Users` MODIFY `updated_at` DATETIME NOT NULL "
        "DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP"
    ]
