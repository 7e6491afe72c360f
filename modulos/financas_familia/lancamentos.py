"""
Lançamentos: entradas, saídas (à vista ou parceladas) e baixa de parcelas.

Regras de saldo:
- entrada credita o titular;
- saída à vista debita os titulares na hora, dividida igualmente;
- compra parcelada não mexe em saldo; cada parcela debita só quando é paga.
"""

import logging
from datetime import date, datetime

from .dinheiro import MAX_VALUE, round_money
from .entities import (
    PAYMENT_AT_ONCE,
    STATUS_PAID,
    STATUS_PENDING,
    Expense,
    ExpenseInput,
    ExpenseItem,
    Income,
    IncomeInput,
)
from .erros import NotFound, ValidationError
from .parcelas import build_schedule, effective_status, installment_note
from .saldos import credit, debit_shared

logger = logging.getLogger(__name__)


def _today() -> date:
    return date.today()


def _now() -> datetime:
    return datetime.utcnow()


def record_income(storage, data: IncomeInput, now: datetime | None = None) -> Income:
    with storage.unit_of_work():
        if not storage.get_user(data.holder_id):
            raise NotFound("Usuário titular não encontrado")
        if not storage.get_company(data.payer_company_id):
            raise NotFound("Empresa pagadora não encontrada")

        income = storage.add_income(
            Income(
                holder_id=data.holder_id,
                reference_date=data.reference_date,
                amount=round_money(data.amount),
                payer_company_id=data.payer_company_id,
                registered_by_id=data.registered_by_id,
                registered_at=now or _now(),
            )
        )
        credit(storage, data.holder_id, income.amount)

    logger.info("Entrada %s registrada: %s para usuário %s", income.id, income.amount, income.holder_id)
    return income


def _priced_items(storage, data: ExpenseInput) -> list[ExpenseItem]:
    """Resolve preços e calcula o total de cada item (congelado no momento do registro)."""
    items = []
    for item in data.items:
        product = storage.get_product(item.product_id)
        if not product:
            raise NotFound(f"Produto {item.product_id} não encontrado")
        unit_price = item.unit_price if item.unit_price is not None else product.unit_price
        items.append(
            ExpenseItem(
                expense_id=0,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=round_money(unit_price),
                line_total=round_money(item.quantity * unit_price),
            )
        )
    return items


def record_expense(
    storage,
    data: ExpenseInput,
    today: date | None = None,
    now: datetime | None = None,
) -> Expense:
    """Registra uma saída e devolve o registro principal (à vista ou "pai" do parcelamento)."""
    today = today or _today()
    now = now or _now()

    if data.payment_mode != PAYMENT_AT_ONCE:
        if not data.installment_count or data.installment_count < 1:
            raise ValidationError("O número de parcelas deve ser pelo menos 1.")
        if data.first_due_date is None:
            raise ValidationError("Campo 'first_due_date' é obrigatório.")

    with storage.unit_of_work():
        for holder_id in data.holder_ids:
            if not storage.get_user(holder_id):
                raise NotFound(f"Usuário {holder_id} não encontrado")
        if not storage.get_company(data.company_id):
            raise NotFound("Empresa não encontrada")

        items = _priced_items(storage, data)
        total = sum((i.line_total for i in items), start=round_money(0))
        if total >= MAX_VALUE:
            raise ValidationError("Total da saída acima do limite permitido.")

        common = dict(
            holder_ids=list(data.holder_ids),
            company_id=data.company_id,
            expense_date=data.expense_date,
            payment_mode=data.payment_mode,
            total_amount=total,
            registered_by_id=data.registered_by_id,
            registered_at=now,
        )

        if data.payment_mode == PAYMENT_AT_ONCE:
            expense = storage.add_expense(
                Expense(note=data.note, status=STATUS_PAID, paid_date=data.expense_date, **common)
            )
        else:
            expense = storage.add_expense(
                Expense(
                    note=data.note,
                    status=STATUS_PENDING,
                    installment_count=data.installment_count,
                    **common,
                )
            )

        for item in items:
            item.expense_id = expense.id
            storage.add_expense_item(item)

        if data.payment_mode == PAYMENT_AT_ONCE:
            debit_shared(storage, expense.holder_ids, total)
        else:
            schedule = build_schedule(total, data.installment_count, data.first_due_date, today)
            for entry in schedule:
                storage.add_expense(
                    Expense(
                        note=installment_note(data.note, entry["number"], data.installment_count),
                        status=entry["status"],
                        parent_id=expense.id,
                        installment_number=entry["number"],
                        installment_count=data.installment_count,
                        due_date=entry["due_date"],
                        installment_amount=entry["amount"],
                        **common,
                    )
                )

    logger.info(
        "Saída %s registrada (%s): total %s, titulares %s",
        expense.id, expense.payment_mode, expense.total_amount, expense.holder_ids,
    )
    return expense


def mark_installment_paid(storage, expense_id: int, payment_date: date | None = None) -> Expense:
    """Dá baixa numa parcela. Repetir a baixa não debita de novo."""
    with storage.unit_of_work():
        installment = storage.get_expense(expense_id, for_update=True)
        if not installment:
            raise NotFound("Parcela não encontrada")
        if not installment.is_installment:
            raise ValidationError("A saída informada não é uma parcela.")

        if installment.status == STATUS_PAID:
            logger.warning("Parcela %s já estava paga; baixa ignorada", expense_id)
            return installment

        installment.status = STATUS_PAID
        installment.paid_date = payment_date or _today()
        installment = storage.save_expense(installment)
        debit_shared(storage, installment.holder_ids, installment.installment_amount)

    logger.info(
        "Parcela %s/%s da saída %s paga em %s",
        installment.installment_number, installment.installment_count,
        installment.parent_id, installment.paid_date,
    )
    return installment


def list_installments(storage, today: date | None = None) -> list[dict]:
    """Saídas parceladas ("pais") e suas parcelas, com o status recalculado para hoje."""
    today = today or _today()
    return [
        e.to_dict(status=effective_status(e, today))
        for e in storage.list_expenses()
        if e.is_installment or e.is_installment_parent
    ]


def refresh_installment_statuses(storage, today: date | None = None) -> int:
    """Grava ``overdue`` nas parcelas não pagas já vencidas. Devolve quantas mudaram."""
    today = today or _today()
    changed = 0
    with storage.unit_of_work():
        for expense in storage.list_expenses():
            if not expense.is_installment or expense.status == STATUS_PAID:
                continue
            status = effective_status(expense, today)
            if status != expense.status:
                expense.status = status
                storage.save_expense(expense)
                changed += 1
    if changed:
        logger.info("%s parcela(s) com status atualizado", changed)
    return changed


def get_expense_with_items(storage, expense_id: int, today: date | None = None) -> dict:
    expense = storage.get_expense(expense_id)
    if not expense:
        raise NotFound("Saída não encontrada")
    data = expense.to_dict(status=effective_status(expense, today or _today()))
    data["items"] = [i.to_dict() for i in storage.list_expense_items(expense_id)]
    return data


def get_income(storage, income_id: int) -> Income:
    income = storage.get_income(income_id)
    if not income:
        raise NotFound("Entrada não encontrada")
    return income

