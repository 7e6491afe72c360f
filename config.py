import os

from dotenv import load_dotenv

# Carregar variáveis de ambiente
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "sim", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        value = int((os.getenv(name) or "").strip())
    except ValueError:
        return default
    return value if value > 0 else default


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'chave_padrao_insegura')

    # memory (padrão, com dados de demonstração) ou sql
    STORAGE_BACKEND = (os.getenv('STORAGE_BACKEND', 'memory') or 'memory').strip().lower()
    SEED_DEMO_DATA = _env_bool('SEED_DEMO_DATA', True)

    LOG_LEVEL = (os.getenv('LOG_LEVEL', 'INFO') or 'INFO').strip().upper()

    # Lista separada por vírgulas; "*" libera qualquer origem
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    # Job que grava "overdue" nas parcelas vencidas
    PARCELAS_SCHEDULER = _env_bool('PARCELAS_SCHEDULER', False)
    PARCELAS_INTERVALO_MIN = _env_int('PARCELAS_INTERVALO_MIN', 60)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
