"""
Helpers de valores monetários.

Todo valor em memória é ``Decimal``; na serialização vira string com
duas casas (ex.: ``"8500.00"``), como o saldo dos usuários é guardado.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP

from .erros import ValidationError

CENT = Decimal("0.01")
QTY_STEP = Decimal("0.001")

# colunas Numeric(15, 2): 13 dígitos antes da vírgula
MAX_VALUE = Decimal("1e13")


def to_decimal(value, field: str = "valor") -> Decimal:
    """Converte entrada (str, int, float, Decimal) em Decimal ou levanta ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Campo '{field}' é obrigatório.")
    try:
        # float passa por str para não carregar o erro binário (0.1 -> 0.1000000000000000055...)
        result = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Valor inválido para '{field}'.")
    if not result.is_finite():
        raise ValidationError(f"Valor inválido para '{field}'.")
    if abs(result) >= MAX_VALUE:
        raise ValidationError(f"Valor muito grande para '{field}'.")
    return result


def round_money(value: Decimal) -> Decimal:
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("Valor fora do limite permitido.")


def format_money(value) -> str:
    return f"{round_money(Decimal(value)):.2f}"


def split_amount(total: Decimal, parts: int) -> list[Decimal]:
    """Divide ``total`` em ``parts`` partes em centavos.

    Cada parte é ``total / parts`` truncado no centavo e a última absorve
    o resto, então a soma das partes é sempre exatamente ``total``.
    """
    if parts < 1:
        raise ValidationError("A quantidade de partes deve ser pelo menos 1.")
    total = round_money(total)
    base = (total / parts).quantize(CENT, rounding=ROUND_DOWN)
    shares = [base] * (parts - 1)
    shares.append(total - base * (parts - 1))
    return shares
