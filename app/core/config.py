from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # --- GERAIS ---
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Race Times API"
    LOG_LEVEL: str = "INFO"

    # --- REDIS ---
    # A lista inteira de corridas fica numa única chave
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 5.0
    RACES_KEY: str = "races"
    # "redis" em produção, "memory" para rodar localmente sem Redis
    STORE_BACKEND: str = "redis"

    # --- URLs ---
    FRONTEND_URL: str = "http://localhost:3000"

    # --- ACESSO ---
    # Chave compartilhada simples. Se não estiver definida, o portão fica desligado.
    ACCESS_KEY: Optional[str] = None

    # --- REGRAS ---
    # False = tempo pior só gera aviso no log (comportamento original)
    ENFORCE_PERSONAL_BEST: bool = False
    EXPORT_TIMEZONE: str = "UTC"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
