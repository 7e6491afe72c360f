"""Tests for user, company and product registries."""

from datetime import date
from decimal import Decimal

import pytest
from werkzeug.security import check_password_hash

from conftest import at_once_purchase
from modulos.financas_familia import cadastros
from modulos.financas_familia.erros import Conflict, NotFound, ValidationError
from modulos.financas_familia.lancamentos import record_expense

NEW_USER = {"name": "Diego Silva", "username": "Diego", "password": "segredo1", "role": "son"}


class TestUsers:

    def test_create_hashes_password(self, storage):
        user = cadastros.create_user(storage, NEW_USER)

        assert user.username == "diego"
        assert user.balance == "0.00"
        assert user.password_hash != "segredo1"
        assert check_password_hash(user.password_hash, "segredo1")
        assert "password_hash" not in user.to_dict()

    def test_username_is_unique(self, storage):
        cadastros.create_user(storage, NEW_USER)

        with pytest.raises(Conflict):
            cadastros.create_user(storage, {**NEW_USER, "username": "DIEGO"})

    @pytest.mark.parametrize(
        "changes",
        [
            {"password": "123"},
            {"role": "uncle"},
            {"name": "  "},
            {"username": None},
        ],
    )
    def test_create_validation(self, storage, changes):
        with pytest.raises(ValidationError):
            cadastros.create_user(storage, {**NEW_USER, **changes})

    def test_update_never_touches_balance(self, storage):
        user = cadastros.create_user(storage, NEW_USER)

        updated = cadastros.update_user(
            storage, user.id, {"name": "Diego S.", "role": "other", "balance": "999.00"}
        )

        assert updated.name == "Diego S."
        assert updated.role == "other"
        assert updated.balance == "0.00"

    def test_update_password_and_username(self, storage):
        user = cadastros.create_user(storage, NEW_USER)
        cadastros.create_user(storage, {**NEW_USER, "username": "ana"})

        updated = cadastros.update_user(storage, user.id, {"password": "outrasenha", "username": "diego"})
        assert check_password_hash(updated.password_hash, "outrasenha")

        with pytest.raises(Conflict):
            cadastros.update_user(storage, user.id, {"username": "ana"})

    def test_get_and_delete_unknown(self, storage):
        with pytest.raises(NotFound):
            cadastros.get_user(storage, 1)
        with pytest.raises(NotFound):
            cadastros.update_user(storage, 1, {"name": "X"})
        with pytest.raises(NotFound):
            cadastros.delete_user(storage, 1)

    def test_delete(self, storage):
        user = cadastros.create_user(storage, NEW_USER)

        cadastros.delete_user(storage, user.id)

        assert storage.list_users() == []


class TestCompanies:

    def test_create_and_update(self, storage):
        company = cadastros.create_company(storage, {"name": "Padaria", "type": "Receiver"})
        assert company.type == "receiver"

        updated = cadastros.update_company(storage, company.id, {"type": "payer"})
        assert updated.type == "payer"
        assert updated.name == "Padaria"

    def test_invalid_type(self, storage):
        with pytest.raises(ValidationError):
            cadastros.create_company(storage, {"name": "Padaria", "type": "bank"})

    def test_delete_unknown(self, storage):
        with pytest.raises(NotFound):
            cadastros.delete_company(storage, 42)


class TestProducts:

    PRODUCT = {
        "barcode": "7890000000001",
        "name": "Café 500g",
        "unit": "g",
        "classification": "Alimento",
        "unit_price": "18.90",
    }

    def test_create_and_find_by_barcode(self, storage):
        product = cadastros.create_product(storage, self.PRODUCT)

        assert product.unit_price == Decimal("18.90")
        assert cadastros.find_product_by_barcode(storage, " 7890000000001 ").id == product.id
        with pytest.raises(NotFound):
            cadastros.find_product_by_barcode(storage, "000")

    def test_barcode_is_unique(self, storage):
        cadastros.create_product(storage, self.PRODUCT)

        with pytest.raises(Conflict):
            cadastros.create_product(storage, {**self.PRODUCT, "name": "Outro"})

    def test_products_without_barcode(self, storage):
        cadastros.create_product(storage, {**self.PRODUCT, "barcode": ""})
        cadastros.create_product(storage, {**self.PRODUCT, "barcode": None})

        assert [p.barcode for p in storage.list_products()] == [None, None]

    def test_negative_price(self, storage):
        with pytest.raises(ValidationError):
            cadastros.create_product(storage, {**self.PRODUCT, "unit_price": "-1"})

    def test_update_barcode_conflict(self, storage):
        first = cadastros.create_product(storage, self.PRODUCT)
        second = cadastros.create_product(storage, {**self.PRODUCT, "barcode": "7890000000002"})

        with pytest.raises(Conflict):
            cadastros.update_product(storage, second.id, {"barcode": first.barcode})
        # mesmo código do próprio produto não conflita
        assert cadastros.update_product(storage, first.id, {"barcode": first.barcode}).id == first.id

    def test_price_change_keeps_recorded_items(self, storage, family):
        expense = record_expense(storage, at_once_purchase(family, expense_date=date(2024, 1, 10)))

        cadastros.update_product(storage, family.rice.id, {"unit_price": "20.00"})

        item = storage.list_expense_items(expense.id)[0]
        assert item.unit_price == Decimal("12.50")
        assert item.line_total == Decimal("25.00")
        assert storage.get_product(family.rice.id).unit_price == Decimal("20.00")
