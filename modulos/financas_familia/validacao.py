"""
Validação dos payloads JSON recebidos pela API.

Cada função recebe o ``dict`` cru do request e devolve valores já
convertidos, ou levanta ``ValidationError`` com mensagem para o usuário.
"""

from datetime import date
from decimal import Decimal, InvalidOperation

from .dinheiro import QTY_STEP, to_decimal
from .entities import (
    COMPANY_TYPES,
    PAYMENT_INSTALLMENTS,
    PAYMENT_MODES,
    USER_ROLES,
    ExpenseInput,
    IncomeInput,
    ItemInput,
)
from .erros import ValidationError

MIN_PASSWORD_LENGTH = 6


def parse_int(value, field: str) -> int:
    if value is None or isinstance(value, bool) or str(value).strip() == "":
        raise ValidationError(f"Campo '{field}' é obrigatório.")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Valor inválido para '{field}'.")


def parse_date(value, field: str) -> date:
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError(f"Campo '{field}' é obrigatório.")
    try:
        # aceita também "2024-01-15T00:00:00.000Z" vindo de formulários JS
        if len(raw) > 10 and raw[10] in "T ":
            raw = raw[:10]
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Data inválida para '{field}' (use AAAA-MM-DD).")


def parse_optional_date(value, field: str) -> date | None:
    if value is None or str(value).strip() == "":
        return None
    return parse_date(value, field)


def require_text(data: dict, field: str) -> str:
    text = str(data.get(field) or "").strip()
    if not text:
        raise ValidationError(f"Campo '{field}' é obrigatório.")
    return text


def optional_text(data: dict, field: str) -> str | None:
    return str(data.get(field) or "").strip() or None


def parse_price(value, field: str) -> Decimal:
    price = to_decimal(value, field)
    if price < 0:
        raise ValidationError(f"'{field}' não pode ser negativo.")
    return price


def validate_role(role: str) -> str:
    role = role.strip().lower()
    if role not in USER_ROLES:
        raise ValidationError(f"Papel inválido ({'/'.join(USER_ROLES)}).")
    return role


def validate_company_type(ctype: str) -> str:
    ctype = ctype.strip().lower()
    if ctype not in COMPANY_TYPES:
        raise ValidationError(f"Tipo de empresa inválido ({'/'.join(COMPANY_TYPES)}).")
    return ctype


def validate_password(password) -> str:
    password = str(password or "")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Use uma senha com pelo menos {MIN_PASSWORD_LENGTH} caracteres.")
    return password


def parse_holder_ids(value) -> list[int]:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError("Informe pelo menos um titular.")
    holder_ids = [parse_int(v, "holder_ids") for v in value]
    if len(set(holder_ids)) != len(holder_ids):
        raise ValidationError("Titular repetido na lista de titulares.")
    return holder_ids


def parse_items(value) -> list[ItemInput]:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError("Informe pelo menos um item.")

    items = []
    for raw in value:
        if not isinstance(raw, dict):
            raise ValidationError("Item inválido.")
        try:
            quantity = to_decimal(raw.get("quantity"), "quantity").quantize(QTY_STEP)
        except InvalidOperation:
            raise ValidationError("Quantidade fora do limite permitido.")
        if quantity <= 0:
            raise ValidationError("A quantidade deve ser maior que zero.")
        unit_price = None
        if raw.get("unit_price") is not None:
            unit_price = parse_price(raw.get("unit_price"), "unit_price")
        items.append(
            ItemInput(
                product_id=parse_int(raw.get("product_id"), "product_id"),
                quantity=quantity,
                unit_price=unit_price,
            )
        )
    return items


def parse_expense(data: dict) -> ExpenseInput:
    payment_mode = str(data.get("payment_mode") or "").strip().lower()
    if payment_mode not in PAYMENT_MODES:
        raise ValidationError(f"Tipo de pagamento inválido ({'/'.join(PAYMENT_MODES)}).")

    expense = ExpenseInput(
        holder_ids=parse_holder_ids(data.get("holder_ids")),
        company_id=parse_int(data.get("company_id"), "company_id"),
        expense_date=parse_date(data.get("expense_date"), "expense_date"),
        payment_mode=payment_mode,
        registered_by_id=parse_int(data.get("registered_by_id"), "registered_by_id"),
        items=parse_items(data.get("items")),
        note=optional_text(data, "note"),
    )

    if payment_mode == PAYMENT_INSTALLMENTS:
        count = parse_int(data.get("installment_count"), "installment_count")
        if count < 1:
            raise ValidationError("O número de parcelas deve ser pelo menos 1.")
        expense.installment_count = count
        expense.first_due_date = parse_date(data.get("first_due_date"), "first_due_date")

    return expense


def parse_income(data: dict) -> IncomeInput:
    amount = to_decimal(data.get("amount"), "amount")
    if amount <= 0:
        raise ValidationError("Valor inválido.")
    return IncomeInput(
        holder_id=parse_int(data.get("holder_id"), "holder_id"),
        reference_date=parse_date(data.get("reference_date"), "reference_date"),
        amount=amount,
        payer_company_id=parse_int(data.get("payer_company_id"), "payer_company_id"),
        registered_by_id=parse_int(data.get("registered_by_id"), "registered_by_id"),
    )


def parse_limit(value, default: int = 10) -> int:
    if value is None or str(value).strip() == "":
        return default
    limit = parse_int(value, "limit")
    if limit < 1:
        raise ValidationError("O limite deve ser pelo menos 1.")
    return limit
