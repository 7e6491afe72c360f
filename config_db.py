"""
Configuração Centralizada do Banco de Dados
===========================================

Usado quando STORAGE_BACKEND=sql.

Suporte a múltiplos bancos:
- PostgreSQL (produção, via DATABASE_URL ou DB_*)
- SQLite (desenvolvimento/local)

Uso:
    from config_db import get_database_url, init_database, get_db_stats
"""

import logging
import os
from typing import Any, Dict
from urllib.parse import urlparse

from dotenv import load_dotenv
from sqlalchemy import inspect, text

# Carregar variáveis de ambiente
load_dotenv()

logger = logging.getLogger(__name__)

# Configurações padrão
DEFAULT_CONFIG = {
    # PostgreSQL (Produção)
    'postgresql': {
        'host': 'localhost',
        'port': 5432,
        'database': 'financas_familia',
        'username': 'postgres',
        'password': '',
        'sslmode': 'prefer'
    },

    # SQLite (Desenvolvimento)
    'sqlite': {
        'database': 'financas_familia.db',
        'path': './instance/financas_familia.db'
    },
}


def _detect_db_type(database_url: str | None) -> str:
    if not database_url:
        return 'sqlite'
    scheme = urlparse(database_url).scheme
    if scheme.startswith('sqlite'):
        return 'sqlite'
    # Fallback para PostgreSQL se não reconhecer
    return 'postgresql'


def get_db_config(db_type: str = 'auto') -> Dict[str, Any]:
    """
    Retorna configuração completa do banco de dados.

    Args:
        db_type: Tipo de banco ('postgresql', 'sqlite', 'auto')

    Returns:
        Dicionário com configurações do banco
    """
    if db_type == 'auto':
        actual_db_type = _detect_db_type(os.getenv('DATABASE_URL'))
        if actual_db_type == 'sqlite' and os.getenv('DB_HOST'):
            actual_db_type = 'postgresql'
    else:
        actual_db_type = db_type

    config = DEFAULT_CONFIG.get(actual_db_type, {}).copy()
    config['type'] = actual_db_type

    # Sobrescrever com variáveis de ambiente
    if actual_db_type == 'postgresql':
        config.update({
            'host': os.getenv('DB_HOST', config.get('host')),
            'port': int(os.getenv('DB_PORT', config.get('port'))),
            'database': os.getenv('DB_NAME', config.get('database')),
            'username': os.getenv('DB_USER', config.get('username')),
            'password': os.getenv('DB_PASSWORD', config.get('password')),
            'sslmode': os.getenv('DB_SSLMODE', config.get('sslmode'))
        })

    elif actual_db_type == 'sqlite':
        config.update({
            'database': os.getenv('SQLITE_DB', config.get('database')),
            'path': os.getenv('SQLITE_PATH', config.get('path'))
        })

    return config


def get_database_url(db_type: str = 'auto') -> str:
    """
    Retorna a URL de conexão completa para o banco.

    DATABASE_URL tem prioridade. O prefixo antigo ``postgres://`` (Heroku,
    Render) é trocado por ``postgresql://``, o único aceito pelo SQLAlchemy.
    """
    if db_type == 'auto':
        database_url = os.getenv('DATABASE_URL')
        if database_url:
            if database_url.startswith('postgres://'):
                database_url = 'postgresql://' + database_url[len('postgres://'):]
            return database_url

    config = get_db_config(db_type)

    if config['type'] == 'postgresql':
        return (
            f"postgresql://{config['username']}:{config['password']}"
            f"@{config['host']}:{config['port']}/{config['database']}"
            f"?sslmode={config['sslmode']}"
        )

    db_path = config.get('path') or f"./instance/{config['database']}"
    if db_path != ':memory:':
        os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    return f"sqlite:///{db_path}"


def get_engine_options(database_url: str) -> Dict[str, Any]:
    """Opções de pool; o SQLite em memória usa o pool padrão do Flask-SQLAlchemy."""
    if _detect_db_type(database_url) == 'sqlite':
        return {}
    return {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }


def init_database(seed: bool = True) -> Dict[str, Any]:
    """
    Cria as tabelas no banco configurado e, se pedido, popula os dados de
    demonstração. Precisa de contexto de aplicação.

    Returns:
        Dicionário com 'tables' criadas e 'seeded' (True se gravou a demo)
    """
    from flask import current_app

    import models  # noqa: F401 - registra as tabelas no metadata
    from extensions import STORAGE_KEY, db
    from modulos.financas_familia.seed import seed_demo_data
    from modulos.financas_familia.sql_storage import SqlStorage

    db.create_all()
    tables = sorted(inspect(db.engine).get_table_names())
    logger.info("Tabelas criadas/atualizadas: %s", ", ".join(tables))

    seeded = False
    if seed:
        storage = current_app.extensions.get(STORAGE_KEY)
        if not isinstance(storage, SqlStorage):
            storage = SqlStorage()
        seeded = seed_demo_data(storage)
        if seeded:
            logger.info("Dados de demonstração gravados")

    # Testar conexão
    with db.engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    return {'tables': tables, 'seeded': seeded}


def _mask_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.password:
        return url.replace(f":{parsed.password}@", ":***@")
    return url


def get_db_stats() -> Dict[str, Any]:
    """
    Retorna estatísticas do banco de dados do app atual.

    Returns:
        Dicionário com tipo, url (senha mascarada), status, tabelas e
        contagem de linhas por tabela
    """
    from extensions import db

    url = db.engine.url.render_as_string(hide_password=False)
    stats = {
        'type': _detect_db_type(url),
        'url': _mask_url(url),
        'tables': [],
        'rows': {},
    }

    try:
        stats['tables'] = sorted(inspect(db.engine).get_table_names())
        with db.engine.connect() as conn:
            for table in stats['tables']:
                count = conn.execute(text(f'SELECT COUNT(*) FROM "{table}"')).scalar()
                stats['rows'][table] = int(count or 0)
        stats['status'] = 'connected'
    except Exception as e:
        logger.exception("Erro ao ler estatísticas do banco")
        stats['status'] = 'error'
        stats['error'] = str(e)

    return stats
