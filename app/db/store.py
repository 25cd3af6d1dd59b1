"""
Acesso à lista de corridas.

Não existe atualização parcial: quem altera algo lê a lista inteira, muda em
memória e grava a lista inteira de volta. Duas escritas simultâneas fazem a
última ganhar (aceito para uma ferramenta de um usuário só). Se um dia for
preciso, dá para trocar o SET por WATCH/MULTI com verificação de versão.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import redis

from app.core.errors import StorageError

logger = logging.getLogger(__name__)

Race = Dict[str, Any]


def _decode(raw: Optional[str]) -> Optional[List[Race]]:
    # String vazia conta como chave ausente
    if not raw:
        return None
    try:
        races = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageError("Failed to read race data") from e
    if not isinstance(races, list) or not all(isinstance(r, dict) for r in races):
        raise StorageError("Failed to read race data")
    return races


class RaceStore:
    """Interface: fetch/save da lista inteira."""

    def fetch(self) -> Optional[List[Race]]:
        """Lista salva, ou None se a chave nunca foi gravada."""
        raise NotImplementedError

    def save(self, races: List[Race]) -> None:
        raise NotImplementedError

    def load(self) -> List[Race]:
        return self.fetch() or []


class RedisRaceStore(RaceStore):

    def __init__(self, client: redis.Redis, key: str = "races"):
        self.client = client
        self.key = key

    def fetch(self) -> Optional[List[Race]]:
        try:
            raw = self.client.get(self.key)
        except redis.RedisError as e:
            logger.error(f"Failed to read races from Redis: {e}")
            raise StorageError("Failed to read race data") from e
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return _decode(raw)

    def save(self, races: List[Race]) -> None:
        try:
            self.client.set(self.key, json.dumps(races))
        except redis.RedisError as e:
            logger.error(f"Failed to update races in Redis: {e}")
            raise StorageError("Failed to update race data") from e


class MemoryRaceStore(RaceStore):
    """Guarda o JSON em memória. Usado em testes e para rodar sem Redis."""

    def __init__(self, races: Optional[List[Race]] = None):
        self._raw: Optional[str] = json.dumps(races) if races is not None else None

    def fetch(self) -> Optional[List[Race]]:
        return _decode(self._raw)

    def save(self, races: List[Race]) -> None:
        self._raw = json.dumps(races)
