"""
Relatórios: resumo do mês e feed de transações.

Tudo é derivado dos registros a cada chamada; nada é armazenado.
"""

from datetime import date
from decimal import Decimal

from .entities import PAYMENT_MODES, STATUS_OVERDUE, STATUS_PAID
from .erros import ValidationError
from .parcelas import effective_status
from .validacao import parse_int, parse_optional_date

TRANSACTION_TYPES = ("income", "expense")


def _same_month(value: date | None, today: date) -> bool:
    return value is not None and value.year == today.year and value.month == today.month


def financial_summary(storage, today: date | None = None) -> dict:
    today = today or date.today()

    family_balance = sum((Decimal(u.balance) for u in storage.list_users()), Decimal("0"))

    month_income = sum(
        (i.amount for i in storage.list_incomes() if _same_month(i.reference_date, today)),
        Decimal("0"),
    )

    month_expenses = Decimal("0")
    pending = 0
    overdue = 0
    for expense in storage.list_expenses():
        if expense.is_installment:
            status = effective_status(expense, today)
            if status == STATUS_PAID:
                if _same_month(expense.paid_date, today):
                    month_expenses += expense.installment_amount
            else:
                pending += 1
                if status == STATUS_OVERDUE:
                    overdue += 1
        elif expense.status == STATUS_PAID and _same_month(expense.paid_date, today):
            # à vista; o "pai" de um parcelamento nunca está pago
            month_expenses += expense.total_amount

    return {
        "family_balance": float(family_balance),
        "month_income": float(month_income),
        "month_expenses": float(month_expenses),
        "pending_installments": pending,
        "overdue_installments": overdue,
    }


def _transaction_feed(storage) -> list[dict]:
    users = {u.id: u for u in storage.list_users()}
    companies = {c.id: c for c in storage.list_companies()}

    def _user_name(user_id):
        user = users.get(user_id)
        return user.name if user else ""

    def _company_name(company_id):
        company = companies.get(company_id)
        return company.name if company else ""

    feed = []
    for income in storage.list_incomes():
        feed.append(
            {
                "id": f"income-{income.id}",
                "record_id": income.id,
                "type": "income",
                "date": income.reference_date,
                "registered_at": income.registered_at,
                "amount": float(income.amount),
                "description": "Entrada financeira",
                "user": _user_name(income.holder_id),
                "user_ids": [income.holder_id],
                "company": _company_name(income.payer_company_id),
                "payment_mode": None,
            }
        )

    for expense in storage.list_expenses():
        if expense.is_installment:
            continue
        feed.append(
            {
                "id": f"expense-{expense.id}",
                "record_id": expense.id,
                "type": "expense",
                "date": expense.expense_date,
                "registered_at": expense.registered_at,
                "amount": float(expense.total_amount),
                "description": expense.note or "Saída financeira",
                "user": _user_name(expense.holder_ids[0]) if expense.holder_ids else "",
                "user_ids": list(expense.holder_ids),
                "company": _company_name(expense.company_id),
                "payment_mode": expense.payment_mode,
            }
        )

    feed.sort(key=lambda t: (t["registered_at"], t["record_id"]), reverse=True)
    return feed


def _serialize(entry: dict) -> dict:
    entry = dict(entry)
    entry.pop("record_id")
    entry["date"] = entry["date"].isoformat()
    entry["registered_at"] = entry["registered_at"].isoformat()
    return entry


def recent_transactions(storage, limit: int = 10) -> list[dict]:
    if limit < 1:
        raise ValidationError("O limite deve ser pelo menos 1.")
    return [_serialize(t) for t in _transaction_feed(storage)[:limit]]


def filtered_transactions(storage, filters: dict) -> list[dict]:
    """Feed filtrado por período, usuário, tipo e forma de pagamento.

    Valores vazios ou "all" desligam o filtro correspondente.
    """
    def _active(name):
        value = filters.get(name)
        if value is None or str(value).strip().lower() in ("", "all"):
            return None
        return str(value).strip()

    start = parse_optional_date(_active("start_date"), "start_date")
    end = parse_optional_date(_active("end_date"), "end_date")
    if start and end and start > end:
        raise ValidationError("A data inicial é posterior à data final.")

    user_id = _active("user_id")
    if user_id is not None:
        user_id = parse_int(user_id, "user_id")

    ttype = _active("type")
    if ttype is not None and ttype.lower() not in TRANSACTION_TYPES:
        raise ValidationError("Tipo inválido (income/expense).")

    payment_mode = _active("payment_mode")
    if payment_mode is not None and payment_mode.lower() not in PAYMENT_MODES:
        raise ValidationError(f"Tipo de pagamento inválido ({'/'.join(PAYMENT_MODES)}).")

    result = []
    for entry in _transaction_feed(storage):
        if start and entry["date"] < start:
            continue
        if end and entry["date"] > end:
            continue
        if user_id is not None and user_id not in entry["user_ids"]:
            continue
        if ttype and entry["type"] != ttype.lower():
            continue
        if payment_mode and entry["payment_mode"] != payment_mode.lower():
            continue
        result.append(_serialize(entry))
    return result


def detailed_expenses(storage, today: date | None = None) -> list[dict]:
    """Saídas com itens, empresa e usuários titulares."""
    today = today or date.today()
    users = {u.id: u for u in storage.list_users()}
    companies = {c.id: c for c in storage.list_companies()}
    items_by_expense = {}
    for item in storage.list_expense_items():
        items_by_expense.setdefault(item.expense_id, []).append(item.to_dict())

    result = []
    for expense in storage.list_expenses():
        data = expense.to_dict(status=effective_status(expense, today))
        company = companies.get(expense.company_id)
        data["items"] = items_by_expense.get(expense.id, [])
        data["company"] = company.to_dict() if company else None
        data["users"] = [users[uid].to_dict() for uid in expense.holder_ids if uid in users]
        result.append(data)
    return result
