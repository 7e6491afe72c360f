"""Pytest configuration and fixtures."""

import os
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

# Ambiente de teste definido antes de importar o app (application cria um app no import)
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SEED_DEMO_DATA", "0")
os.environ.setdefault("PARCELAS_SCHEDULER", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from application import create_app  # noqa: E402
from extensions import db, get_storage  # noqa: E402
from modulos.financas_familia.entities import (  # noqa: E402
    PAYMENT_AT_ONCE,
    PAYMENT_INSTALLMENTS,
    Company,
    ExpenseInput,
    ItemInput,
    Product,
    User,
)
from modulos.financas_familia.storage import MemStorage  # noqa: E402


def make_family(storage):
    """Três usuários com saldo zero, uma empresa de cada tipo e três produtos."""
    ana = storage.add_user(User(name="Ana", username="ana", password_hash="x", role="mother"))
    bruno = storage.add_user(User(name="Bruno", username="bruno", password_hash="x", role="father"))
    carla = storage.add_user(User(name="Carla", username="carla", password_hash="x", role="daughter"))
    employer = storage.add_company(Company(name="Empresa ABC", type="payer"))
    market = storage.add_company(Company(name="Mercado Central", type="receiver"))
    rice = storage.add_product(
        Product(barcode="789001", name="Arroz 5kg", unit="kg", classification="Alimento", unit_price=Decimal("12.50"))
    )
    milk = storage.add_product(
        Product(barcode="789002", name="Leite 1L", unit="L", classification="Alimento", unit_price=Decimal("5.80"))
    )
    tv = storage.add_product(
        Product(name="TV 50", unit="un", classification="Eletrônico", unit_price=Decimal("1200.00"))
    )
    return SimpleNamespace(
        ana=ana, bruno=bruno, carla=carla,
        employer=employer, market=market,
        rice=rice, milk=milk, tv=tv,
    )


def at_once_purchase(family, holder_ids=None, expense_date=date(2024, 1, 10)):
    """Compra à vista: 2 x arroz (25.00) + 3 x leite a 5.79 (17.37) = 42.37."""
    return ExpenseInput(
        holder_ids=holder_ids or [family.ana.id, family.bruno.id],
        company_id=family.market.id,
        expense_date=expense_date,
        payment_mode=PAYMENT_AT_ONCE,
        registered_by_id=family.ana.id,
        items=[
            ItemInput(product_id=family.rice.id, quantity=Decimal("2.000")),
            ItemInput(product_id=family.milk.id, quantity=Decimal("3.000"), unit_price=Decimal("5.79")),
        ],
        note="Mercado do mês",
    )


def tv_purchase(family, holder_ids=None, count=12, first_due_date=date(2024, 1, 15)):
    """TV de 1200.00 parcelada."""
    return ExpenseInput(
        holder_ids=holder_ids or [family.ana.id],
        company_id=family.market.id,
        expense_date=date(2024, 1, 10),
        payment_mode=PAYMENT_INSTALLMENTS,
        registered_by_id=family.ana.id,
        items=[ItemInput(product_id=family.tv.id, quantity=Decimal("1.000"))],
        note="TV",
        installment_count=count,
        first_due_date=first_due_date,
    )


@pytest.fixture
def storage():
    """Repositório em memória vazio."""
    return MemStorage()


@pytest.fixture
def family(storage):
    return make_family(storage)


@pytest.fixture
def app():
    """App com repositório em memória, sem dados de demonstração."""
    return create_app({
        "TESTING": True,
        "STORAGE_BACKEND": "memory",
        "SEED_DEMO_DATA": False,
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sql_app():
    """App com repositório SQL num SQLite em memória."""
    app = create_app({
        "TESTING": True,
        "STORAGE_BACKEND": "sql",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SEED_DEMO_DATA": False,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def sql_storage(sql_app):
    return get_storage()
