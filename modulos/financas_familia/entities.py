"""Registros do livro-caixa familiar trocados com o repositório."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .dinheiro import format_money

USER_ROLES = ("father", "mother", "son", "daughter", "other")
COMPANY_TYPES = ("payer", "receiver")

PAYMENT_AT_ONCE = "at_once"
PAYMENT_INSTALLMENTS = "installments"
PAYMENT_MODES = (PAYMENT_AT_ONCE, PAYMENT_INSTALLMENTS)

STATUS_PENDING = "pending"
STATUS_DUE = "due"
STATUS_OVERDUE = "overdue"
STATUS_PAID = "paid"
EXPENSE_STATUSES = (STATUS_PENDING, STATUS_DUE, STATUS_OVERDUE, STATUS_PAID)


def _iso(value):
    return value.isoformat() if value is not None else None


def _money(value):
    return format_money(value) if value is not None else None


@dataclass
class User:
    name: str
    username: str
    password_hash: str
    role: str
    balance: str = "0.00"
    id: int | None = None

    def to_dict(self) -> dict:
        # password_hash nunca sai da API
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "role": self.role,
            "balance": self.balance,
        }


@dataclass
class Company:
    name: str
    type: str
    id: int | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "type": self.type}


@dataclass
class Product:
    name: str
    unit: str
    classification: str
    unit_price: Decimal
    barcode: str | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "unit": self.unit,
            "classification": self.classification,
            "unit_price": _money(self.unit_price),
        }


@dataclass
class Income:
    holder_id: int
    reference_date: date
    amount: Decimal
    payer_company_id: int
    registered_by_id: int
    registered_at: datetime
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "holder_id": self.holder_id,
            "reference_date": _iso(self.reference_date),
            "amount": _money(self.amount),
            "payer_company_id": self.payer_company_id,
            "registered_by_id": self.registered_by_id,
            "registered_at": _iso(self.registered_at),
        }


@dataclass
class Expense:
    """Saída. Uma compra parcelada vira um registro "pai" e N parcelas "filhas"."""

    holder_ids: list[int]
    company_id: int
    expense_date: date
    payment_mode: str
    total_amount: Decimal
    registered_by_id: int
    registered_at: datetime
    note: str | None = None
    status: str = STATUS_PENDING
    parent_id: int | None = None
    installment_number: int | None = None
    installment_count: int | None = None
    due_date: date | None = None
    installment_amount: Decimal | None = None
    paid_date: date | None = None
    id: int | None = None

    @property
    def is_installment(self) -> bool:
        return self.parent_id is not None

    @property
    def is_installment_parent(self) -> bool:
        return self.parent_id is None and self.payment_mode == PAYMENT_INSTALLMENTS

    def to_dict(self, status: str | None = None) -> dict:
        return {
            "id": self.id,
            "holder_ids": list(self.holder_ids),
            "company_id": self.company_id,
            "expense_date": _iso(self.expense_date),
            "payment_mode": self.payment_mode,
            "total_amount": _money(self.total_amount),
            "note": self.note,
            "registered_by_id": self.registered_by_id,
            "registered_at": _iso(self.registered_at),
            "parent_id": self.parent_id,
            "installment_number": self.installment_number,
            "installment_count": self.installment_count,
            "due_date": _iso(self.due_date),
            "installment_amount": _money(self.installment_amount),
            "status": status or self.status,
            "paid_date": _iso(self.paid_date),
        }


@dataclass
class ExpenseItem:
    expense_id: int
    product_id: int
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "expense_id": self.expense_id,
            "product_id": self.product_id,
            "quantity": f"{self.quantity:.3f}",
            "unit_price": _money(self.unit_price),
            "line_total": _money(self.line_total),
        }


# Entradas já validadas (saída de validacao.py)

@dataclass
class ItemInput:
    product_id: int
    quantity: Decimal
    unit_price: Decimal | None = None


@dataclass
class ExpenseInput:
    holder_ids: list[int]
    company_id: int
    expense_date: date
    payment_mode: str
    registered_by_id: int
    items: list[ItemInput] = field(default_factory=list)
    note: str | None = None
    installment_count: int | None = None
    first_due_date: date | None = None


@dataclass
class IncomeInput:
    holder_id: int
    reference_date: date
    amount: Decimal
    payer_company_id: int
    registered_by_id: int
