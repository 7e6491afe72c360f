"""
Repositório sobre Flask-SQLAlchemy (STORAGE_BACKEND=sql).

Precisa de contexto de aplicação. Cada ``unit_of_work`` é uma transação
da ``db.session``; operações fora dela fazem commit na hora.
"""

import threading
from contextlib import contextmanager
from decimal import Decimal

from sqlalchemy import select

import models
from extensions import db

from .dinheiro import format_money
from .entities import Company, Expense, ExpenseItem, Income, Product, User
from .erros import NotFound
from .storage import FinanceStorage


def _user(row: models.User) -> User:
    return User(
        id=row.id,
        name=row.name,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
        balance=format_money(row.balance or 0),
    )


def _company(row: models.Company) -> Company:
    return Company(id=row.id, name=row.name, type=row.type)


def _product(row: models.Product) -> Product:
    return Product(
        id=row.id,
        barcode=row.barcode,
        name=row.name,
        unit=row.unit,
        classification=row.classification,
        unit_price=Decimal(row.unit_price),
    )


def _income(row: models.Income) -> Income:
    return Income(
        id=row.id,
        holder_id=row.holder_id,
        reference_date=row.reference_date,
        amount=Decimal(row.amount),
        payer_company_id=row.payer_company_id,
        registered_by_id=row.registered_by_id,
        registered_at=row.registered_at,
    )


def _expense(row: models.Expense) -> Expense:
    return Expense(
        id=row.id,
        holder_ids=[h.user_id for h in row.holders],
        company_id=row.company_id,
        expense_date=row.expense_date,
        payment_mode=row.payment_mode,
        total_amount=Decimal(row.total_amount),
        note=row.note,
        registered_by_id=row.registered_by_id,
        registered_at=row.registered_at,
        parent_id=row.parent_id,
        installment_number=row.installment_number,
        installment_count=row.installment_count,
        due_date=row.due_date,
        installment_amount=Decimal(row.installment_amount) if row.installment_amount is not None else None,
        status=row.status,
        paid_date=row.paid_date,
    )


def _expense_item(row: models.ExpenseItem) -> ExpenseItem:
    return ExpenseItem(
        id=row.id,
        expense_id=row.expense_id,
        product_id=row.product_id,
        quantity=Decimal(row.quantity),
        unit_price=Decimal(row.unit_price),
        line_total=Decimal(row.line_total),
    )


_EXPENSE_FIELDS = (
    "company_id", "expense_date", "payment_mode", "total_amount", "note",
    "registered_by_id", "registered_at", "parent_id", "installment_number",
    "installment_count", "due_date", "installment_amount", "status", "paid_date",
)


class SqlStorage(FinanceStorage):

    def __init__(self):
        self._local = threading.local()

    @property
    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_depth.setter
    def _depth(self, value: int) -> None:
        self._local.depth = value

    @contextmanager
    def unit_of_work(self):
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        finally:
            self._depth = 0

    def _flush(self) -> None:
        if self._depth:
            db.session.flush()
        else:
            db.session.commit()

    def _required(self, model, record_id: int, label: str):
        row = db.session.get(model, record_id)
        if row is None:
            raise NotFound(f"{label} não encontrado(a)")
        return row

    def _delete(self, model, record_id: int, label: str) -> None:
        db.session.delete(self._required(model, record_id, label))
        self._flush()

    # Usuários

    def get_user(self, user_id: int, for_update: bool = False) -> User | None:
        if for_update:
            # trava a linha até o fim da transação (ignorado no SQLite)
            stmt = select(models.User).where(models.User.id == user_id).with_for_update()
            stmt = stmt.execution_options(populate_existing=True)
            row = db.session.execute(stmt).scalar_one_or_none()
        else:
            row = db.session.get(models.User, user_id)
        return _user(row) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        row = models.User.query.filter_by(username=username).first()
        return _user(row) if row else None

    def add_user(self, user: User) -> User:
        row = models.User(
            name=user.name,
            username=user.username,
            password_hash=user.password_hash,
            role=user.role,
            balance=Decimal(user.balance),
        )
        db.session.add(row)
        self._flush()
        return _user(row)

    def save_user(self, user: User) -> User:
        row = self._required(models.User, user.id, "Usuário")
        row.name = user.name
        row.username = user.username
        row.password_hash = user.password_hash
        row.role = user.role
        row.balance = Decimal(user.balance)
        self._flush()
        return _user(row)

    def delete_user(self, user_id: int) -> None:
        self._delete(models.User, user_id, "Usuário")

    def list_users(self) -> list[User]:
        return [_user(r) for r in models.User.query.order_by(models.User.id).all()]

    # Empresas

    def get_company(self, company_id: int) -> Company | None:
        row = db.session.get(models.Company, company_id)
        return _company(row) if row else None

    def add_company(self, company: Company) -> Company:
        row = models.Company(name=company.name, type=company.type)
        db.session.add(row)
        self._flush()
        return _company(row)

    def save_company(self, company: Company) -> Company:
        row = self._required(models.Company, company.id, "Empresa")
        row.name = company.name
        row.type = company.type
        self._flush()
        return _company(row)

    def delete_company(self, company_id: int) -> None:
        self._delete(models.Company, company_id, "Empresa")

    def list_companies(self) -> list[Company]:
        return [_company(r) for r in models.Company.query.order_by(models.Company.id).all()]

    # Produtos

    def get_product(self, product_id: int) -> Product | None:
        row = db.session.get(models.Product, product_id)
        return _product(row) if row else None

    def get_product_by_barcode(self, barcode: str) -> Product | None:
        row = models.Product.query.filter_by(barcode=barcode).first()
        return _product(row) if row else None

    def add_product(self, product: Product) -> Product:
        row = models.Product(
            barcode=product.barcode,
            name=product.name,
            unit=product.unit,
            classification=product.classification,
            unit_price=product.unit_price,
        )
        db.session.add(row)
        self._flush()
        return _product(row)

    def save_product(self, product: Product) -> Product:
        row = self._required(models.Product, product.id, "Produto")
        row.barcode = product.barcode
        row.name = product.name
        row.unit = product.unit
        row.classification = product.classification
        row.unit_price = product.unit_price
        self._flush()
        return _product(row)

    def delete_product(self, product_id: int) -> None:
        self._delete(models.Product, product_id, "Produto")

    def list_products(self) -> list[Product]:
        return [_product(r) for r in models.Product.query.order_by(models.Product.id).all()]

    # Entradas

    def get_income(self, income_id: int) -> Income | None:
        row = db.session.get(models.Income, income_id)
        return _income(row) if row else None

    def add_income(self, income: Income) -> Income:
        row = models.Income(
            holder_id=income.holder_id,
            reference_date=income.reference_date,
            amount=income.amount,
            payer_company_id=income.payer_company_id,
            registered_by_id=income.registered_by_id,
            registered_at=income.registered_at,
        )
        db.session.add(row)
        self._flush()
        return _income(row)

    def list_incomes(self) -> list[Income]:
        return [_income(r) for r in models.Income.query.order_by(models.Income.id).all()]

    # Saídas

    def get_expense(self, expense_id: int, for_update: bool = False) -> Expense | None:
        if for_update:
            # baixa concorrente da mesma parcela espera esta transação terminar
            stmt = select(models.Expense).where(models.Expense.id == expense_id).with_for_update()
            stmt = stmt.execution_options(populate_existing=True)
            row = db.session.execute(stmt).scalar_one_or_none()
        else:
            row = db.session.get(models.Expense, expense_id)
        return _expense(row) if row else None

    def add_expense(self, expense: Expense) -> Expense:
        row = models.Expense(**{f: getattr(expense, f) for f in _EXPENSE_FIELDS})
        row.holders = [
            models.ExpenseHolder(user_id=user_id, position=position)
            for position, user_id in enumerate(expense.holder_ids)
        ]
        db.session.add(row)
        self._flush()
        return _expense(row)

    def save_expense(self, expense: Expense) -> Expense:
        row = self._required(models.Expense, expense.id, "Saída")
        for f in _EXPENSE_FIELDS:
            setattr(row, f, getattr(expense, f))
        if [h.user_id for h in row.holders] != list(expense.holder_ids):
            row.holders = [
                models.ExpenseHolder(user_id=user_id, position=position)
                for position, user_id in enumerate(expense.holder_ids)
            ]
        self._flush()
        return _expense(row)

    def list_expenses(self) -> list[Expense]:
        return [_expense(r) for r in models.Expense.query.order_by(models.Expense.id).all()]

    # Itens de saída

    def add_expense_item(self, item: ExpenseItem) -> ExpenseItem:
        row = models.ExpenseItem(
            expense_id=item.expense_id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
        )
        db.session.add(row)
        self._flush()
        return _expense_item(row)

    def list_expense_items(self, expense_id: int | None = None) -> list[ExpenseItem]:
        query = models.ExpenseItem.query
        if expense_id is not None:
            query = query.filter_by(expense_id=expense_id)
        return [_expense_item(r) for r in query.order_by(models.ExpenseItem.id).all()]
