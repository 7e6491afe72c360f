"""Tests for the demo data seed."""

from datetime import date, datetime
from decimal import Decimal

from werkzeug.security import check_password_hash

from modulos.financas_familia.relatorios import financial_summary
from modulos.financas_familia.seed import DEMO_PASSWORD, seed_demo_data


def test_seeds_empty_storage_once(storage):
    assert seed_demo_data(storage, today=date(2024, 6, 15), now=datetime(2024, 6, 15, 12, 0))
    assert not seed_demo_data(storage, today=date(2024, 6, 15))

    assert [u.username for u in storage.list_users()] == ["admin", "maria", "pedro"]
    assert [u.balance for u in storage.list_users()] == ["8500.00", "4720.50", "2200.00"]
    assert len(storage.list_companies()) == 6
    assert len(storage.list_products()) == 6
    assert len(storage.list_incomes()) == 2
    assert check_password_hash(storage.list_users()[0].password_hash, DEMO_PASSWORD)


def test_fridge_installments(storage):
    seed_demo_data(storage, today=date(2024, 6, 15), now=datetime(2024, 6, 15, 12, 0))

    parent, *children = storage.list_expenses()
    assert parent.total_amount == Decimal("3000.00")
    assert parent.installment_count == 12
    assert len(children) == 12
    assert all(c.installment_amount == Decimal("250.00") for c in children)
    # comprada em 16/05, primeira parcela um mês depois
    assert children[0].due_date == date(2024, 6, 16)
    assert children[0].status == "paid"
    assert [c.status for c in children[1:]] == ["due"] * 11

    summary = financial_summary(storage, today=date(2024, 6, 15))
    assert summary["pending_installments"] == 11
    assert summary["family_balance"] == 15420.50


def test_first_installment_not_paid_in_future(storage):
    # comprada em 01/03, primeira parcela vence em 01/04, depois de hoje
    seed_demo_data(storage, today=date(2024, 3, 31), now=datetime(2024, 3, 31, 12, 0))

    _, first, *_ = storage.list_expenses()
    assert first.due_date == date(2024, 4, 1)
    assert first.status == "paid"
    assert first.paid_date == date(2024, 3, 31)
