"""
Atualização de saldos dos usuários.

O saldo é o caixa conjunto da família: não há piso nem teto, pode ficar
negativo. Chamar sempre dentro de ``storage.unit_of_work()``.
"""

from decimal import Decimal

from .dinheiro import format_money, split_amount, to_decimal
from .erros import NotFound


def _apply(storage, user_id: int, delta: Decimal):
    user = storage.get_user(user_id, for_update=True)
    if not user:
        raise NotFound("Usuário não encontrado")
    user.balance = format_money(to_decimal(user.balance, "balance") + delta)
    return storage.save_user(user)


def credit(storage, user_id: int, amount: Decimal):
    return _apply(storage, user_id, Decimal(amount))


def debit(storage, user_id: int, amount: Decimal):
    return _apply(storage, user_id, -Decimal(amount))


def debit_shared(storage, holder_ids: list[int], amount: Decimal) -> None:
    """Debita ``amount`` dividido igualmente entre os titulares."""
    for holder_id, share in zip(holder_ids, split_amount(amount, len(holder_ids))):
        debit(storage, holder_id, share)
