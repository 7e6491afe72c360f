"""
Repositório do livro-caixa familiar.

``FinanceStorage`` é a interface que os serviços (lancamentos, cadastros,
relatorios) usam. Há duas implementações:

- ``MemStorage``: mapas em memória do processo (padrão, dados de demonstração);
- ``SqlStorage`` (sql_storage.py): Flask-SQLAlchemy.

Os registros devolvidos são cópias: alterações só valem após ``save_*``.
"""

import copy
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager

from .entities import Company, Expense, ExpenseItem, Income, Product, User
from .erros import NotFound


class FinanceStorage(ABC):

    @abstractmethod
    def unit_of_work(self):
        """Context manager: tudo dentro dele é gravado junto ou nada é gravado."""

    # Usuários
    @abstractmethod
    def get_user(self, user_id: int, for_update: bool = False) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    def add_user(self, user: User) -> User: ...

    @abstractmethod
    def save_user(self, user: User) -> User: ...

    @abstractmethod
    def delete_user(self, user_id: int) -> None: ...

    @abstractmethod
    def list_users(self) -> list[User]: ...

    # Empresas
    @abstractmethod
    def get_company(self, company_id: int) -> Company | None: ...

    @abstractmethod
    def add_company(self, company: Company) -> Company: ...

    @abstractmethod
    def save_company(self, company: Company) -> Company: ...

    @abstractmethod
    def delete_company(self, company_id: int) -> None: ...

    @abstractmethod
    def list_companies(self) -> list[Company]: ...

    # Produtos
    @abstractmethod
    def get_product(self, product_id: int) -> Product | None: ...

    @abstractmethod
    def get_product_by_barcode(self, barcode: str) -> Product | None: ...

    @abstractmethod
    def add_product(self, product: Product) -> Product: ...

    @abstractmethod
    def save_product(self, product: Product) -> Product: ...

    @abstractmethod
    def delete_product(self, product_id: int) -> None: ...

    @abstractmethod
    def list_products(self) -> list[Product]: ...

    # Entradas
    @abstractmethod
    def get_income(self, income_id: int) -> Income | None: ...

    @abstractmethod
    def add_income(self, income: Income) -> Income: ...

    @abstractmethod
    def list_incomes(self) -> list[Income]: ...

    # Saídas
    @abstractmethod
    def get_expense(self, expense_id: int, for_update: bool = False) -> Expense | None: ...

    @abstractmethod
    def add_expense(self, expense: Expense) -> Expense: ...

    @abstractmethod
    def save_expense(self, expense: Expense) -> Expense: ...

    @abstractmethod
    def list_expenses(self) -> list[Expense]: ...

    # Itens de saída
    @abstractmethod
    def add_expense_item(self, item: ExpenseItem) -> ExpenseItem: ...

    @abstractmethod
    def list_expense_items(self, expense_id: int | None = None) -> list[ExpenseItem]: ...

    def is_empty(self) -> bool:
        return not self.list_users()


class MemStorage(FinanceStorage):
    """Mapas em memória. Os dados se perdem quando o processo termina."""

    _TABLES = ("users", "companies", "products", "incomes", "expenses", "expense_items")

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self._tables = {name: {} for name in self._TABLES}
        self._next_ids = {name: 1 for name in self._TABLES}

    @contextmanager
    def unit_of_work(self):
        with self._lock:
            if self._depth:
                # unidade aninhada participa da externa
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = (copy.deepcopy(self._tables), dict(self._next_ids))
            self._depth = 1
            try:
                yield self
            except Exception:
                self._tables, self._next_ids = snapshot
                raise
            finally:
                self._depth = 0

    # helpers genéricos

    def _get(self, table: str, record_id: int):
        with self._lock:
            record = self._tables[table].get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def _add(self, table: str, record):
        with self._lock:
            record = copy.deepcopy(record)
            record.id = self._next_ids[table]
            self._next_ids[table] += 1
            self._tables[table][record.id] = record
            return copy.deepcopy(record)

    def _save(self, table: str, record, label: str):
        with self._lock:
            if record.id not in self._tables[table]:
                raise NotFound(f"{label} não encontrado(a)")
            self._tables[table][record.id] = copy.deepcopy(record)
            return copy.deepcopy(record)

    def _delete(self, table: str, record_id: int, label: str) -> None:
        with self._lock:
            if self._tables[table].pop(record_id, None) is None:
                raise NotFound(f"{label} não encontrado(a)")

    def _list(self, table: str, predicate=None) -> list:
        with self._lock:
            records = sorted(self._tables[table].values(), key=lambda r: r.id)
            if predicate is not None:
                records = [r for r in records if predicate(r)]
            return copy.deepcopy(records)

    # Usuários

    def get_user(self, user_id: int, for_update: bool = False) -> User | None:
        return self._get("users", user_id)

    def get_user_by_username(self, username: str) -> User | None:
        found = self._list("users", lambda u: u.username == username)
        return found[0] if found else None

    def add_user(self, user: User) -> User:
        return self._add("users", user)

    def save_user(self, user: User) -> User:
        return self._save("users", user, "Usuário")

    def delete_user(self, user_id: int) -> None:
        self._delete("users", user_id, "Usuário")

    def list_users(self) -> list[User]:
        return self._list("users")

    # Empresas

    def get_company(self, company_id: int) -> Company | None:
        return self._get("companies", company_id)

    def add_company(self, company: Company) -> Company:
        return self._add("companies", company)

    def save_company(self, company: Company) -> Company:
        return self._save("companies", company, "Empresa")

    def delete_company(self, company_id: int) -> None:
        self._delete("companies", company_id, "Empresa")

    def list_companies(self) -> list[Company]:
        return self._list("companies")

    # Produtos

    def get_product(self, product_id: int) -> Product | None:
        return self._get("products", product_id)

    def get_product_by_barcode(self, barcode: str) -> Product | None:
        found = self._list("products", lambda p: p.barcode == barcode)
        return found[0] if found else None

    def add_product(self, product: Product) -> Product:
        return self._add("products", product)

    def save_product(self, product: Product) -> Product:
        return self._save("products", product, "Produto")

    def delete_product(self, product_id: int) -> None:
        self._delete("products", product_id, "Produto")

    def list_products(self) -> list[Product]:
        return self._list("products")

    # Entradas

    def get_income(self, income_id: int) -> Income | None:
        return self._get("incomes", income_id)

    def add_income(self, income: Income) -> Income:
        return self._add("incomes", income)

    def list_incomes(self) -> list[Income]:
        return self._list("incomes")

    # Saídas

    def get_expense(self, expense_id: int, for_update: bool = False) -> Expense | None:
        return self._get("expenses", expense_id)

    def add_expense(self, expense: Expense) -> Expense:
        return self._add("expenses", expense)

    def save_expense(self, expense: Expense) -> Expense:
        return self._save("expenses", expense, "Saída")

    def list_expenses(self) -> list[Expense]:
        return self._list("expenses")

    # Itens de saída

    def add_expense_item(self, item: ExpenseItem) -> ExpenseItem:
        return self._add("expense_items", item)

    def list_expense_items(self, expense_id: int | None = None) -> list[ExpenseItem]:
        if expense_id is None:
            return self._list("expense_items")
        return self._list("expense_items", lambda i: i.expense_id == expense_id)
