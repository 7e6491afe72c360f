from flask import Blueprint, jsonify

from modulos.financas_familia import __version__
from modulos.financas_familia.api import financas_bp

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    return jsonify({
        "success": True,
        "name": "Finanças da Família",
        "version": __version__,
        "api": "/api",
    })


@main_bp.route("/health")
def health():
    return "OK"


def register_blueprints(app):
    """Registra todos os blueprints globais da aplicação."""
    # Home / health check
    app.register_blueprint(main_bp)

    # Finanças da Família (API JSON)
    app.register_blueprint(financas_bp, url_prefix="/api")
