"""
Dados de demonstração carregados na inicialização (família Silva).

Os saldos já vêm prontos; por isso os registros são gravados direto no
repositório, sem passar pelos serviços que mexem em saldo.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from werkzeug.security import generate_password_hash

from .entities import (
    PAYMENT_INSTALLMENTS,
    STATUS_PAID,
    STATUS_PENDING,
    Company,
    Expense,
    ExpenseItem,
    Income,
    Product,
    User,
)
from .parcelas import add_months, build_schedule, installment_note

DEMO_PASSWORD = "123456"

DEMO_USERS = [
    {"name": "João Silva", "username": "admin", "role": "father", "balance": "8500.00"},
    {"name": "Maria Silva", "username": "maria", "role": "mother", "balance": "4720.50"},
    {"name": "Pedro Silva", "username": "pedro", "role": "son", "balance": "2200.00"},
]

DEMO_COMPANIES = [
    {"name": "Empresa ABC Ltda", "type": "payer"},
    {"name": "Supermercado Extra", "type": "receiver"},
    {"name": "Magazine Luiza", "type": "receiver"},
    {"name": "Freelance XYZ", "type": "payer"},
    {"name": "Consultoria Tech", "type": "payer"},
    {"name": "Posto Shell", "type": "receiver"},
]

DEMO_PRODUCTS = [
    {"barcode": "7896030100123", "name": "Arroz Branco 5kg", "unit": "kg", "classification": "Alimento", "unit_price": "12.50"},
    {"barcode": "7896030100456", "name": "Feijão Preto 1kg", "unit": "kg", "classification": "Alimento", "unit_price": "8.90"},
    {"barcode": "7896030100789", "name": "Óleo de Soja 900ml", "unit": "ml", "classification": "Alimento", "unit_price": "4.50"},
    {"barcode": "7896030100321", "name": "Leite Integral 1L", "unit": "L", "classification": "Alimento", "unit_price": "5.80"},
    {"barcode": "7896030100654", "name": "Açúcar Cristal 1kg", "unit": "kg", "classification": "Alimento", "unit_price": "3.20"},
    {"barcode": None, "name": "Geladeira Brastemp", "unit": "un", "classification": "Eletrodoméstico", "unit_price": "3000.00"},
]


def seed_demo_data(storage, today: date | None = None, now: datetime | None = None) -> bool:
    """Popula o repositório se estiver vazio. Devolve True se gravou algo."""
    today = today or date.today()
    now = now or datetime.utcnow()

    if not storage.is_empty():
        return False

    with storage.unit_of_work():
        password_hash = generate_password_hash(DEMO_PASSWORD)
        users = [
            storage.add_user(User(password_hash=password_hash, **data))
            for data in DEMO_USERS
        ]
        companies = [storage.add_company(Company(**data)) for data in DEMO_COMPANIES]
        products = [
            storage.add_product(Product(**{**data, "unit_price": Decimal(data["unit_price"])}))
            for data in DEMO_PRODUCTS
        ]

        storage.add_income(
            Income(
                holder_id=users[0].id,
                reference_date=today,
                amount=Decimal("5000.00"),
                payer_company_id=companies[0].id,
                registered_by_id=users[0].id,
                registered_at=now,
            )
        )
        storage.add_income(
            Income(
                holder_id=users[1].id,
                reference_date=today - timedelta(days=1),
                amount=Decimal("1200.00"),
                payer_company_id=companies[3].id,
                registered_by_id=users[1].id,
                registered_at=now - timedelta(days=1),
            )
        )

        # Geladeira em 12x, comprada há 30 dias, primeira parcela já paga
        purchase_date = today - timedelta(days=30)
        registered_at = now - timedelta(days=30)
        fridge = products[-1]
        total = fridge.unit_price
        common = dict(
            holder_ids=[users[0].id],
            company_id=companies[2].id,
            expense_date=purchase_date,
            payment_mode=PAYMENT_INSTALLMENTS,
            total_amount=total,
            registered_by_id=users[0].id,
            registered_at=registered_at,
            installment_count=12,
        )
        parent = storage.add_expense(
            Expense(note=fridge.name, status=STATUS_PENDING, **common)
        )
        storage.add_expense_item(
            ExpenseItem(
                expense_id=parent.id,
                product_id=fridge.id,
                quantity=Decimal("1.000"),
                unit_price=total,
                line_total=total,
            )
        )
        for entry in build_schedule(total, 12, add_months(purchase_date, 1), today):
            first = entry["number"] == 1
            storage.add_expense(
                Expense(
                    note=installment_note(fridge.name, entry["number"], 12),
                    status=STATUS_PAID if first else entry["status"],
                    paid_date=min(entry["due_date"], today) if first else None,
                    parent_id=parent.id,
                    installment_number=entry["number"],
                    due_date=entry["due_date"],
                    installment_amount=entry["amount"],
                    **common,
                )
            )

    return True
