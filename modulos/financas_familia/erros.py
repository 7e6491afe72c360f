"""
Erros do núcleo financeiro.

O núcleo levanta estas exceções de forma síncrona; a camada Flask
(api.py) converte cada uma no envelope JSON com o status HTTP adequado.
"""


class FinanceError(Exception):
    """Base de todos os erros de negócio."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(FinanceError):
    """Id desconhecido referenciado em busca, edição ou baixa."""

    status_code = 404


class ValidationError(FinanceError):
    """Campo obrigatório ausente ou valor inválido."""

    status_code = 400


class Conflict(FinanceError):
    """Violação de unicidade (username, código de barras)."""

    status_code = 409
