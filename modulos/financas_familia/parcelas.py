"""
Cronograma de parcelas e máquina de status.

Status de uma parcela: ``due``/``pending`` -> ``overdue`` -> ``paid``.
``paid`` é terminal e é o único que mexe em saldo (ver lancamentos.py).
"""

import calendar
from datetime import date
from decimal import Decimal

from .dinheiro import split_amount
from .entities import STATUS_DUE, STATUS_OVERDUE, STATUS_PAID


def _shift_month(y: int, m: int, delta: int) -> tuple[int, int]:
    total = (y * 12) + (m - 1) + delta
    return total // 12, (total % 12) + 1


def add_months(start: date, months: int) -> date:
    """Soma meses de calendário mantendo o dia; se não existir, usa o último dia do mês."""
    year, month = _shift_month(start.year, start.month, months)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def status_for_due_date(due_date: date, today: date) -> str:
    return STATUS_OVERDUE if due_date < today else STATUS_DUE


def build_schedule(total: Decimal, count: int, first_due_date: date, today: date) -> list[dict]:
    """Gera as parcelas de uma compra: número, vencimento, valor e status inicial.

    Vencimentos são sempre calculados a partir do primeiro (31/jan -> 29/fev -> 31/mar).
    """
    schedule = []
    for index, amount in enumerate(split_amount(total, count)):
        due_date = add_months(first_due_date, index)
        schedule.append(
            {
                "number": index + 1,
                "due_date": due_date,
                "amount": amount,
                "status": status_for_due_date(due_date, today),
            }
        )
    return schedule


def effective_status(expense, today: date) -> str:
    """Status para exibição: parcela não paga com vencimento passado aparece como vencida."""
    if expense.status == STATUS_PAID:
        return STATUS_PAID
    if not expense.is_installment or expense.due_date is None:
        return expense.status
    return status_for_due_date(expense.due_date, today)


def installment_note(note: str | None, number: int, count: int) -> str:
    return f"{note or 'Compra parcelada'} - Parcela {number}/{count}"
