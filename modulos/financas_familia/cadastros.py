"""
Cadastros: usuários, empresas e produtos.

Exclusões removem o registro sem checar referências em lançamentos.
"""

from werkzeug.security import generate_password_hash

from .entities import Company, Product, User
from .erros import Conflict, NotFound
from .validacao import (
    optional_text,
    parse_price,
    require_text,
    validate_company_type,
    validate_password,
    validate_role,
)


# ============================================================================
# USUÁRIOS
# ============================================================================

def get_user(storage, user_id: int) -> User:
    user = storage.get_user(user_id)
    if not user:
        raise NotFound("Usuário não encontrado")
    return user


def create_user(storage, data: dict) -> User:
    name = require_text(data, "name")
    username = require_text(data, "username").lower()
    role = validate_role(require_text(data, "role"))
    password = validate_password(data.get("password"))

    with storage.unit_of_work():
        if storage.get_user_by_username(username):
            raise Conflict("Este username já está cadastrado.")
        return storage.add_user(
            User(
                name=name,
                username=username,
                password_hash=generate_password_hash(password),
                role=role,
            )
        )


def update_user(storage, user_id: int, data: dict) -> User:
    with storage.unit_of_work():
        user = get_user(storage, user_id)
        if "name" in data:
            user.name = require_text(data, "name")
        if "username" in data:
            username = require_text(data, "username").lower()
            other = storage.get_user_by_username(username)
            if other and other.id != user.id:
                raise Conflict("Este username já está cadastrado.")
            user.username = username
        if "role" in data:
            user.role = validate_role(require_text(data, "role"))
        if "password" in data:
            user.password_hash = generate_password_hash(validate_password(data.get("password")))
        # saldo só muda por lançamentos
        return storage.save_user(user)


def delete_user(storage, user_id: int) -> None:
    storage.delete_user(user_id)


# ============================================================================
# EMPRESAS
# ============================================================================

def get_company(storage, company_id: int) -> Company:
    company = storage.get_company(company_id)
    if not company:
        raise NotFound("Empresa não encontrada")
    return company


def create_company(storage, data: dict) -> Company:
    company = Company(
        name=require_text(data, "name"),
        type=validate_company_type(require_text(data, "type")),
    )
    return storage.add_company(company)


def update_company(storage, company_id: int, data: dict) -> Company:
    with storage.unit_of_work():
        company = get_company(storage, company_id)
        if "name" in data:
            company.name = require_text(data, "name")
        if "type" in data:
            company.type = validate_company_type(require_text(data, "type"))
        return storage.save_company(company)


def delete_company(storage, company_id: int) -> None:
    storage.delete_company(company_id)


# ============================================================================
# PRODUTOS
# ============================================================================

def get_product(storage, product_id: int) -> Product:
    product = storage.get_product(product_id)
    if not product:
        raise NotFound("Produto não encontrado")
    return product


def find_product_by_barcode(storage, barcode: str) -> Product:
    product = storage.get_product_by_barcode(str(barcode).strip())
    if not product:
        raise NotFound("Produto não encontrado")
    return product


def _ensure_barcode_free(storage, barcode: str | None, product_id: int | None = None) -> None:
    if not barcode:
        return
    other = storage.get_product_by_barcode(barcode)
    if other and other.id != product_id:
        raise Conflict("Já existe um produto com este código de barras.")


def create_product(storage, data: dict) -> Product:
    product = Product(
        barcode=optional_text(data, "barcode"),
        name=require_text(data, "name"),
        unit=require_text(data, "unit"),
        classification=require_text(data, "classification"),
        unit_price=parse_price(data.get("unit_price"), "unit_price"),
    )
    with storage.unit_of_work():
        _ensure_barcode_free(storage, product.barcode)
        return storage.add_product(product)


def update_product(storage, product_id: int, data: dict) -> Product:
    with storage.unit_of_work():
        product = get_product(storage, product_id)
        if "barcode" in data:
            product.barcode = optional_text(data, "barcode")
            _ensure_barcode_free(storage, product.barcode, product.id)
        for field in ("name", "unit", "classification"):
            if field in data:
                setattr(product, field, require_text(data, field))
        if "unit_price" in data:
            # itens já registrados guardam o preço da época
            product.unit_price = parse_price(data.get("unit_price"), "unit_price")
        return storage.save_product(product)


def delete_product(storage, product_id: int) -> None:
    storage.delete_product(product_id)
