"""Tests for balance updates."""

from decimal import Decimal

import pytest

from modulos.financas_familia.erros import NotFound
from modulos.financas_familia.saldos import credit, debit, debit_shared


def _balance(storage, user):
    return storage.get_user(user.id).balance


class TestBalanceUpdater:

    def test_credit_and_debit(self, storage, family):
        credit(storage, family.ana.id, Decimal("100.10"))
        debit(storage, family.ana.id, Decimal("0.20"))

        assert _balance(storage, family.ana) == "99.90"

    def test_balance_may_go_negative(self, storage, family):
        credit(storage, family.ana.id, Decimal("10"))
        debit(storage, family.ana.id, Decimal("25"))

        assert _balance(storage, family.ana) == "-15.00"

    def test_unknown_user(self, storage, family):
        with pytest.raises(NotFound):
            credit(storage, 999, Decimal("1"))

    def test_debit_shared_splits_by_holder(self, storage, family):
        holders = [family.ana.id, family.bruno.id, family.carla.id]
        debit_shared(storage, holders, Decimal("100.00"))

        assert [_balance(storage, u) for u in (family.ana, family.bruno, family.carla)] == [
            "-33.33",
            "-33.33",
            "-33.34",
        ]
