from datetime import datetime

from extensions import db

# Nota: usados apenas com STORAGE_BACKEND=sql (modulos/financas_familia/sql_storage.py).
# Referências a usuários, empresas e produtos não têm FK: a exclusão de
# cadastros não verifica lançamentos que apontam para eles.


class User(db.Model):
    """Membros da família"""
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    username = db.Column(db.String(150), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # father, mother, son, daughter, other
    balance = db.Column(db.Numeric(15, 2), default=0, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.username}>"


class Company(db.Model):
    """Empresas pagadoras (renda) e recebedoras (compras)"""
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(20), nullable=False)  # payer ou receiver

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Company {self.name} ({self.type})>"


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(64), unique=True, nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    classification = db.Column(db.String(100), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Product {self.name} R$ {self.unit_price}>"


class Income(db.Model):
    """Entradas financeiras"""
    __tablename__ = "incomes"

    id = db.Column(db.Integer, primary_key=True)
    holder_id = db.Column(db.Integer, nullable=False, index=True)
    reference_date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    payer_company_id = db.Column(db.Integer, nullable=False)
    registered_by_id = db.Column(db.Integer, nullable=False)
    registered_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Income {self.id} R$ {self.amount}>"


class Expense(db.Model):
    """Saídas: à vista, "pai" de parcelamento ou parcela"""
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, nullable=False)
    expense_date = db.Column(db.Date, nullable=False)
    payment_mode = db.Column(db.String(20), nullable=False)  # at_once ou installments
    total_amount = db.Column(db.Numeric(15, 2), nullable=False)
    note = db.Column(db.Text)
    registered_by_id = db.Column(db.Integer, nullable=False)
    registered_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Parcelas
    parent_id = db.Column(db.Integer, db.ForeignKey("expenses.id"), nullable=True, index=True)
    installment_number = db.Column(db.Integer)
    installment_count = db.Column(db.Integer)
    due_date = db.Column(db.Date)
    installment_amount = db.Column(db.Numeric(15, 2))

    # Status
    status = db.Column(db.String(20), default="pending", nullable=False)  # pending, due, overdue, paid
    paid_date = db.Column(db.Date)

    # Relacionamentos
    holders = db.relationship(
        "ExpenseHolder",
        backref="expense",
        order_by="ExpenseHolder.position",
        cascade="all, delete-orphan",
    )
    items = db.relationship("ExpenseItem", backref="expense", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Expense {self.id} R$ {self.total_amount} ({self.status})>"


class ExpenseHolder(db.Model):
    """Titulares de uma saída (um por linha, na ordem informada)"""
    __tablename__ = "expense_holders"

    id = db.Column(db.Integer, primary_key=True)
    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ExpenseHolder {self.expense_id}:{self.user_id}>"


class ExpenseItem(db.Model):
    """Itens comprados numa saída (preço congelado no registro)"""
    __tablename__ = "expense_items"

    id = db.Column(db.Integer, primary_key=True)
    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Numeric(15, 3), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    line_total = db.Column(db.Numeric(15, 2), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ExpenseItem {self.expense_id}:{self.product_id} x{self.quantity}>"
