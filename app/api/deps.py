from typing import Optional
from fastapi import Depends, Header

from app.core.config import settings
from app.core.errors import AccessDeniedError
from app.db.store import MemoryRaceStore, RaceStore, RedisRaceStore
from app.services.races import RaceService

# Store em memória compartilhado entre requisições (só quando STORE_BACKEND=memory)
_memory_store = MemoryRaceStore()

def get_store() -> RaceStore:
    if settings.STORE_BACKEND == "memory":
        return _memory_store

    # Importação tardia: sem Redis configurado, o resto do app ainda sobe
    from app.db.session import client
    return RedisRaceStore(client, key=settings.RACES_KEY)

def get_race_service(store: RaceStore = Depends(get_store)) -> RaceService:
    return RaceService(store, enforce_personal_best=settings.ENFORCE_PERSONAL_BEST)

def check_access_key(x_access_key: Optional[str] = Header(None)) -> None:
    """
    Portão simples por chave compartilhada (header X-Access-Key).
    Não é autenticação de verdade; sem ACCESS_KEY configurada, libera tudo.
    """
    if not settings.ACCESS_KEY:
        return
    if x_access_key != settings.ACCESS_KEY:
        raise AccessDeniedError("Invalid access key")
