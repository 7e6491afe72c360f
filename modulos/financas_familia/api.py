"""
API REST - Finanças da Família
==============================

Endpoints JSON (prefixo /api). Toda resposta segue o envelope
``{"success": true, ...}`` ou ``{"success": false, "message": "..."}``.
"""

from datetime import date

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from extensions import get_storage

from . import cadastros, lancamentos, relatorios
from .erros import FinanceError
from .parcelas import effective_status
from .validacao import parse_expense, parse_income, parse_limit, parse_optional_date

# Blueprint da API
financas_bp = Blueprint(
    "financas_familia",
    __name__,
)


def _payload() -> dict:
    data = request.get_json(silent=True) or {}
    return data if isinstance(data, dict) else {}


def _ok(status: int = 200, **data):
    resp = jsonify({"success": True, **data})
    resp.status_code = status
    return resp


@financas_bp.errorhandler(FinanceError)
def _finance_error(e: FinanceError):
    resp = jsonify({"success": False, "message": e.message})
    resp.status_code = e.status_code
    return resp


@financas_bp.errorhandler(Exception)
def _unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        resp = jsonify({"success": False, "message": e.description})
        resp.status_code = e.code or 500
        return resp
    current_app.logger.exception("Erro inesperado em %s %s", request.method, request.path)
    resp = jsonify({"success": False, "message": "Erro interno no servidor"})
    resp.status_code = 500
    return resp


# ============================================================================
# USUÁRIOS
# ============================================================================

@financas_bp.route("/users", methods=["GET"])
def list_users():
    return _ok(users=[u.to_dict() for u in get_storage().list_users()])


@financas_bp.route("/users", methods=["POST"])
def create_user():
    user = cadastros.create_user(get_storage(), _payload())
    return _ok(201, user=user.to_dict())


@financas_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    return _ok(user=cadastros.get_user(get_storage(), user_id).to_dict())


@financas_bp.route("/users/<int:user_id>", methods=["PUT"])
def update_user(user_id: int):
    user = cadastros.update_user(get_storage(), user_id, _payload())
    return _ok(user=user.to_dict())


@financas_bp.route("/users/<int:user_id>", methods=["DELETE"])
def delete_user(user_id: int):
    cadastros.delete_user(get_storage(), user_id)
    return _ok(message="Usuário excluído")


# ============================================================================
# EMPRESAS
# ============================================================================

@financas_bp.route("/companies", methods=["GET"])
def list_companies():
    return _ok(companies=[c.to_dict() for c in get_storage().list_companies()])


@financas_bp.route("/companies", methods=["POST"])
def create_company():
    company = cadastros.create_company(get_storage(), _payload())
    return _ok(201, company=company.to_dict())


@financas_bp.route("/companies/<int:company_id>", methods=["GET"])
def get_company(company_id: int):
    return _ok(company=cadastros.get_company(get_storage(), company_id).to_dict())


@financas_bp.route("/companies/<int:company_id>", methods=["PUT"])
def update_company(company_id: int):
    company = cadastros.update_company(get_storage(), company_id, _payload())
    return _ok(company=company.to_dict())


@financas_bp.route("/companies/<int:company_id>", methods=["DELETE"])
def delete_company(company_id: int):
    cadastros.delete_company(get_storage(), company_id)
    return _ok(message="Empresa excluída")


# ============================================================================
# PRODUTOS
# ============================================================================

@financas_bp.route("/products", methods=["GET"])
def list_products():
    return _ok(products=[p.to_dict() for p in get_storage().list_products()])


@financas_bp.route("/products", methods=["POST"])
def create_product():
    product = cadastros.create_product(get_storage(), _payload())
    return _ok(201, product=product.to_dict())


@financas_bp.route("/products/barcode/<barcode>", methods=["GET"])
def get_product_by_barcode(barcode: str):
    product = cadastros.find_product_by_barcode(get_storage(), barcode)
    return _ok(product=product.to_dict())


@financas_bp.route("/products/<int:product_id>", methods=["GET"])
def get_product(product_id: int):
    return _ok(product=cadastros.get_product(get_storage(), product_id).to_dict())


@financas_bp.route("/products/<int:product_id>", methods=["PUT"])
def update_product(product_id: int):
    product = cadastros.update_product(get_storage(), product_id, _payload())
    return _ok(product=product.to_dict())


@financas_bp.route("/products/<int:product_id>", methods=["DELETE"])
def delete_product(product_id: int):
    cadastros.delete_product(get_storage(), product_id)
    return _ok(message="Produto excluído")


# ============================================================================
# ENTRADAS
# ============================================================================

@financas_bp.route("/incomes", methods=["GET"])
def list_incomes():
    return _ok(incomes=[i.to_dict() for i in get_storage().list_incomes()])


@financas_bp.route("/incomes", methods=["POST"])
def create_income():
    income = lancamentos.record_income(get_storage(), parse_income(_payload()))
    return _ok(201, income=income.to_dict())


@financas_bp.route("/incomes/<int:income_id>", methods=["GET"])
def get_income(income_id: int):
    return _ok(income=lancamentos.get_income(get_storage(), income_id).to_dict())


# ============================================================================
# SAÍDAS E PARCELAS
# ============================================================================

@financas_bp.route("/expenses", methods=["GET"])
def list_expenses():
    today = date.today()
    expenses = [
        e.to_dict(status=effective_status(e, today))
        for e in get_storage().list_expenses()
    ]
    return _ok(expenses=expenses)


@financas_bp.route("/expenses", methods=["POST"])
def create_expense():
    storage = get_storage()
    expense = lancamentos.record_expense(storage, parse_expense(_payload()))
    return _ok(201, expense=lancamentos.get_expense_with_items(storage, expense.id))


@financas_bp.route("/expenses/detailed", methods=["GET"])
def detailed_expenses():
    return _ok(expenses=relatorios.detailed_expenses(get_storage()))


@financas_bp.route("/expenses/installments", methods=["GET"])
def list_installments():
    return _ok(expenses=lancamentos.list_installments(get_storage()))


@financas_bp.route("/expenses/<int:expense_id>", methods=["GET"])
def get_expense(expense_id: int):
    return _ok(expense=lancamentos.get_expense_with_items(get_storage(), expense_id))


@financas_bp.route("/expenses/<int:expense_id>/pay", methods=["PATCH"])
def pay_installment(expense_id: int):
    payment_date = parse_optional_date(_payload().get("payment_date"), "payment_date")
    installment = lancamentos.mark_installment_paid(get_storage(), expense_id, payment_date)
    return _ok(expense=installment.to_dict())


# ============================================================================
# RELATÓRIOS
# ============================================================================

@financas_bp.route("/reports/summary", methods=["GET"])
def summary():
    return _ok(summary=relatorios.financial_summary(get_storage()))


@financas_bp.route("/reports/transactions", methods=["GET"])
def recent_transactions():
    limit = parse_limit(request.args.get("limit"))
    return _ok(transactions=relatorios.recent_transactions(get_storage(), limit))


@financas_bp.route("/reports/filtered", methods=["GET"])
def filtered_transactions():
    transactions = relatorios.filtered_transactions(get_storage(), request.args.to_dict())
    return _ok(transactions=transactions)
