"""Tests for the SQLAlchemy repository (SQLite in memory)."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from config_db import get_db_stats, init_database
from extensions import STORAGE_KEY
from conftest import at_once_purchase, make_family, tv_purchase
from modulos.financas_familia.entities import Company
from modulos.financas_familia.erros import NotFound
from modulos.financas_familia.lancamentos import mark_installment_paid, record_expense
from modulos.financas_familia.relatorios import financial_summary, recent_transactions
from modulos.financas_familia.saldos import credit
from modulos.financas_familia.sql_storage import SqlStorage


class TestSqlStorage:

    def test_is_sql_backend(self, sql_storage):
        assert isinstance(sql_storage, SqlStorage)
        assert sql_storage.is_empty()

    def test_round_trip_records(self, sql_storage):
        family = make_family(sql_storage)

        user = sql_storage.get_user(family.ana.id)
        assert user.balance == "0.00"
        assert sql_storage.get_user_by_username("bruno").id == family.bruno.id
        assert sql_storage.get_product_by_barcode("789002").unit_price == Decimal("5.80")
        assert sql_storage.get_product(family.tv.id).barcode is None
        assert [c.type for c in sql_storage.list_companies()] == ["payer", "receiver"]

    def test_save_and_delete_unknown(self, sql_storage):
        with pytest.raises(NotFound):
            sql_storage.save_company(Company(name="X", type="payer", id=99))
        with pytest.raises(NotFound):
            sql_storage.delete_user(99)

    def test_rollback(self, sql_storage):
        family = make_family(sql_storage)

        with pytest.raises(RuntimeError):
            with sql_storage.unit_of_work():
                sql_storage.add_company(Company(name="Nova", type="payer"))
                credit(sql_storage, family.ana.id, Decimal("50"))
                raise RuntimeError("falha no meio")

        assert len(sql_storage.list_companies()) == 2
        assert sql_storage.get_user(family.ana.id).balance == "0.00"

    def test_at_once_expense(self, sql_storage):
        family = make_family(sql_storage)

        expense = record_expense(sql_storage, at_once_purchase(family, holder_ids=[family.bruno.id, family.ana.id]))

        stored = sql_storage.get_expense(expense.id)
        assert stored.holder_ids == [family.bruno.id, family.ana.id]
        assert stored.total_amount == Decimal("42.37")
        assert [i.line_total for i in sql_storage.list_expense_items(expense.id)] == [
            Decimal("25.00"),
            Decimal("17.37"),
        ]
        assert sql_storage.get_user(family.bruno.id).balance == "-21.18"
        assert sql_storage.get_user(family.ana.id).balance == "-21.19"

    def test_installments_and_settlement(self, sql_storage):
        family = make_family(sql_storage)
        parent = record_expense(sql_storage, tv_purchase(family), today=date(2024, 1, 10))

        children = [e for e in sql_storage.list_expenses() if e.parent_id == parent.id]
        assert len(children) == 12
        assert sum(c.installment_amount for c in children) == Decimal("1200.00")
        assert children[-1].due_date == date(2024, 12, 15)

        mark_installment_paid(sql_storage, children[0].id, date(2024, 1, 15))
        mark_installment_paid(sql_storage, children[0].id, date(2024, 1, 20))

        paid = sql_storage.get_expense(children[0].id)
        assert paid.status == "paid"
        assert paid.paid_date == date(2024, 1, 15)
        assert sql_storage.get_user(family.ana.id).balance == "-100.00"

        summary = financial_summary(sql_storage, today=date(2024, 1, 20))
        assert summary["month_expenses"] == pytest.approx(100.0)
        assert summary["pending_installments"] == 11
        assert [t["id"] for t in recent_transactions(sql_storage)] == [f"expense-{parent.id}"]

    def test_settlement_locks_expense_row(self, sql_storage, monkeypatch):
        family = make_family(sql_storage)
        parent = record_expense(sql_storage, tv_purchase(family), today=date(2024, 1, 10))
        child = next(e for e in sql_storage.list_expenses() if e.parent_id == parent.id)

        lock_flags = []
        original = SqlStorage.get_expense

        def recording_get_expense(self, expense_id, for_update=False):
            lock_flags.append(for_update)
            return original(self, expense_id, for_update=for_update)

        monkeypatch.setattr(SqlStorage, "get_expense", recording_get_expense)

        paid = mark_installment_paid(sql_storage, child.id, date(2024, 1, 15))

        assert paid.status == "paid"
        assert lock_flags == [True]


class TestSqlApp:

    def test_api_uses_database(self, sql_app):
        client = sql_app.test_client()

        resp = client.post("/api/users", json={"name": "Ana", "username": "ana", "password": "123456", "role": "mother"})
        assert resp.status_code == 201
        assert resp.get_json()["user"]["balance"] == "0.00"
        assert client.post(
            "/api/users", json={"name": "Ana 2", "username": "ana", "password": "123456", "role": "other"}
        ).status_code == 409
        assert [u["username"] for u in client.get("/api/users").get_json()["users"]] == ["ana"]

    def test_init_database_seeds_once(self, sql_app):
        result = init_database(seed=True)
        assert result["seeded"] is True
        assert "expenses" in result["tables"]

        assert init_database(seed=True)["seeded"] is False

        stats = get_db_stats()
        assert stats["status"] == "connected"
        assert stats["type"] == "sqlite"
        assert stats["rows"]["users"] == 3
        assert stats["rows"]["expenses"] == 13

    def test_init_database_uses_app_storage(self, sql_app):
        calls = []

        class RecordingStorage(SqlStorage):
            def is_empty(self):
                calls.append("is_empty")
                return super().is_empty()

        storage = RecordingStorage()
        sql_app.extensions[STORAGE_KEY] = storage

        assert init_database(seed=True)["seeded"] is True
        assert calls == ["is_empty"]
        assert len(storage.list_users()) == 3

    def test_paying_installment_twice_debits_once(self, sql_app):
        client = sql_app.test_client()
        ana = client.post("/api/users", json={"name": "Ana", "username": "ana", "password": "123456", "role": "mother"})
        bruno = client.post("/api/users", json={"name": "Bruno", "username": "bruno", "password": "123456", "role": "father"})
        market = client.post("/api/companies", json={"name": "Mercado", "type": "receiver"})
        rice = client.post(
            "/api/products",
            json={"barcode": "789001", "name": "Arroz", "unit": "kg", "classification": "Alimento", "unit_price": "12.50"},
        )
        ana_id = ana.get_json()["user"]["id"]

        resp = client.post(
            "/api/expenses",
            json={
                "holder_ids": [ana_id, bruno.get_json()["user"]["id"]],
                "company_id": market.get_json()["company"]["id"],
                "expense_date": "2024-01-10",
                "payment_mode": "installments",
                "installment_count": 2,
                "first_due_date": (date.today() + timedelta(days=5)).isoformat(),
                "registered_by_id": ana_id,
                "items": [{"product_id": rice.get_json()["product"]["id"], "quantity": 4}],
            },
        )
        assert resp.status_code == 201
        parent_id = resp.get_json()["expense"]["id"]
        children = [
            e for e in client.get("/api/expenses/installments").get_json()["expenses"] if e["parent_id"] == parent_id
        ]

        pay_url = f"/api/expenses/{children[0]['id']}/pay"
        first = client.patch(pay_url, json={"payment_date": "2024-02-01"})
        second = client.patch(pay_url, json={"payment_date": "2024-02-05"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.get_json()["expense"]["paid_date"] == "2024-02-01"
        users = client.get("/api/users").get_json()["users"]
        assert [u["balance"] for u in users] == ["-12.50", "-12.50"]
