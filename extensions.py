"""
Extensões Flask - Configuração Centralizada
==========================================

Instâncias globais das extensões, ligadas ao app em ``create_app``.
"""

from flask import current_app
from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Instância global do SQLAlchemy
db = SQLAlchemy()

# Instância global do Flask-Migrate
migrate = Migrate()

# CORS para o front-end (origens em CORS_ORIGINS)
cors = CORS()

STORAGE_KEY = "financas_storage"


def get_storage():
    """Repositório (memória ou SQL) escolhido para o app atual."""
    return current_app.extensions[STORAGE_KEY]


__all__ = [
    'db',
    'migrate',
    'cors',
    'get_storage',
]
