# application.py
"""
Arquivo de entrada WSGI (gunicorn application:application)
Também expõe 'app' para o CLI do Flask (flask --app application ...)
"""

import logging
import os

import click
from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask, jsonify, request
from sqlalchemy.engine import make_url

from config import Config
from config_db import get_database_url, get_db_stats, get_engine_options, init_database
from extensions import STORAGE_KEY, cors, db, get_storage, migrate
from global_blueprints import register_blueprints
from modulos.financas_familia.lancamentos import refresh_installment_statuses
from modulos.financas_familia.seed import seed_demo_data
from modulos.financas_familia.sql_storage import SqlStorage
from modulos.financas_familia.storage import MemStorage

STORAGE_BACKENDS = ("memory", "sql")


def _configurar_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("modulos").setLevel(level)
    app.logger.setLevel(level)

    # Reduzir ruído do servidor de desenvolvimento
    logging.getLogger('werkzeug').setLevel(logging.ERROR)


def _configurar_storage(app: Flask) -> None:
    backend = app.config.get("STORAGE_BACKEND", "memory")
    if backend not in STORAGE_BACKENDS:
        raise RuntimeError(f"STORAGE_BACKEND inválido: {backend!r} (use memory ou sql)")

    if backend == "sql":
        # Configuração do banco usando config_db.py
        database_url = app.config.get("SQLALCHEMY_DATABASE_URI") or get_database_url()
        app.config["SQLALCHEMY_DATABASE_URI"] = database_url
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", get_engine_options(database_url))

        db.init_app(app)
        migrate.init_app(app, db)
        app.extensions[STORAGE_KEY] = SqlStorage()
        app.logger.info("Repositório SQL em %s", make_url(database_url).render_as_string(hide_password=True))
        return

    storage = MemStorage()
    if app.config.get("SEED_DEMO_DATA"):
        seed_demo_data(storage)
        app.logger.info("Repositório em memória com dados de demonstração")
    app.extensions[STORAGE_KEY] = storage


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _configurar_logging(app)
    _configurar_storage(app)

    # Configurar CORS para o front-end
    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config.get("CORS_ORIGINS") or "*",
            "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": False
        }
    })

    # Registrar todos os blueprints da aplicação
    register_blueprints(app)

    # Respostas JSON para rotas /api inexistentes
    @app.errorhandler(404)
    def api_404(e):
        if request.path.startswith('/api/'):
            resp = jsonify({'success': False, 'message': 'Endpoint não encontrado', 'path': request.path})
            resp.status_code = 404
            return resp
        return e

    @app.errorhandler(405)
    def api_405(e):
        if request.path.startswith('/api/'):
            resp = jsonify({'success': False, 'message': 'Método não permitido', 'path': request.path})
            resp.status_code = 405
            return resp
        return e

    @app.cli.command('init-db')
    @click.option('--sem-demo', is_flag=True, help='Não grava os dados de demonstração.')
    def init_db_command(sem_demo):
        """Cria as tabelas no banco configurado e popula dados iniciais."""
        if app.config.get("STORAGE_BACKEND") != "sql":
            click.echo('⚠️  STORAGE_BACKEND não é "sql"; nada a fazer.')
            return
        with app.app_context():
            result = init_database(seed=not sem_demo)
        click.echo(f"✅ Banco inicializado com sucesso! Tabelas: {', '.join(result['tables'])}")
        if result['seeded']:
            click.echo('👤 Usuários de demonstração: admin / maria / pedro (senha 123456)')

    @app.cli.command('db-stats')
    def db_stats_command():
        """Mostra estatísticas do banco de dados."""
        if app.config.get("STORAGE_BACKEND") != "sql":
            with app.app_context():
                storage = get_storage()
                click.echo("📊 Repositório em memória")
                click.echo(f"👤 Usuários: {len(storage.list_users())}")
                click.echo(f"🏢 Empresas: {len(storage.list_companies())}")
                click.echo(f"📦 Produtos: {len(storage.list_products())}")
                click.echo(f"💰 Entradas: {len(storage.list_incomes())}")
                click.echo(f"🧾 Saídas: {len(storage.list_expenses())}")
            return

        with app.app_context():
            stats = get_db_stats()
        click.echo(f"📊 Estatísticas do Banco: {stats['type']}")
        click.echo(f"🔗 Status: {stats['status']}")
        click.echo(f"🔗 URL: {stats['url']}")
        for table in stats.get('tables', []):
            click.echo(f"📋 {table}: {stats['rows'].get(table, 0)} linha(s)")
        if stats.get('error'):
            click.echo(f"❌ {stats['error']}")

    @app.cli.command('atualizar-parcelas')
    def atualizar_parcelas_command():
        """Grava "overdue" nas parcelas não pagas já vencidas."""
        with app.app_context():
            changed = refresh_installment_statuses(get_storage())
        click.echo(f"✅ {changed} parcela(s) atualizada(s)")

    _iniciar_scheduler_parcelas(app)

    return app


# Scheduler das parcelas (intervalo configurável via PARCELAS_INTERVALO_MIN em minutos)
def _iniciar_scheduler_parcelas(app: Flask):
    """Inicia o scheduler em background que atualiza o status das parcelas.

    Se PARCELAS_SCHEDULER estiver desligado, o scheduler NÃO é iniciado.
    """
    if not app.config.get("PARCELAS_SCHEDULER") or app.config.get("TESTING"):
        app.logger.debug("PARCELAS_SCHEDULER desativado. Scheduler não será iniciado.")
        return None

    # Evitar múltiplos schedulers quando o reloader do Flask está ativo em debug
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return None

    scheduler = BackgroundScheduler(timezone="UTC")
    intervalo_min = app.config.get("PARCELAS_INTERVALO_MIN") or 60

    def _job_atualizar_parcelas():
        """Wrapper que garante contexto da aplicação ao rodar o job."""
        with app.app_context():
            try:
                refresh_installment_statuses(get_storage())
            except Exception:
                app.logger.exception("Falha ao atualizar status das parcelas")

    scheduler.add_job(
        _job_atualizar_parcelas,
        "interval",
        minutes=intervalo_min,
        id="atualizar_parcelas_job",
        replace_existing=True,
    )
    scheduler.start()
    app.logger.info("Scheduler de parcelas iniciado (a cada %s min)", intervalo_min)
    return scheduler


# Instância global usada por WSGI/Gunicorn
application: Flask = create_app()

# Alias para compatibilidade com código que usa "app"
app = application


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    application.run(debug=True, host='0.0.0.0', port=port)
