import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz

from app.core.errors import NotFoundError, ValidationError
from app.db.store import RaceStore
from app.schemas.race import NATURAL_KEY, RaceCreate, RaceUpdate
from app.utils import race_time

logger = logging.getLogger(__name__)

Race = Dict[str, Any]


def utc_now_iso() -> str:
    """Data atual em UTC no mesmo formato do toISOString() do front."""
    now = datetime.now(pytz.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _safe_difference(new: str, old: Optional[str]) -> Optional[str]:
    if not old:
        return None
    try:
        return race_time.difference(new, old)
    except ValidationError:
        logger.warning(f"Stored time {old!r} is invalid, skipping comparison")
        return None


def _find_index(races: List[Race], race_id: str) -> int:
    for i, race in enumerate(races):
        if race.get("id") == race_id:
            return i
    return -1


class RaceService:
    """
    Regras das corridas: criação, atualização parcial, remoção e recorde pessoal.
    Toda operação lê a lista inteira do store, altera e grava a lista inteira.
    """

    def __init__(self, store: RaceStore, enforce_personal_best: bool = False):
        self.store = store
        self.enforce_personal_best = enforce_personal_best

    def list_races(self, filters: Optional[Dict[str, Optional[str]]] = None) -> List[Race]:
        races = self.store.fetch()
        if races is None:
            raise NotFoundError("No race data found")

        # Filtros vazios são ignorados
        active = {k: v for k, v in (filters or {}).items() if v}
        if not active:
            return races
        return [r for r in races if all(r.get(k) == v for k, v in active.items())]

    def find_by_natural_key(self, country: str, stage: str, car_class: str, car: str, surface: str,
                            races: Optional[List[Race]] = None) -> Optional[Race]:
        if races is None:
            races = self.store.load()
        key = (country, stage, car_class, car, surface)
        for race in races:
            if tuple(race.get(field) for field in NATURAL_KEY) == key:
                return race
        return None

    def create_race(self, race_in: RaceCreate) -> Race:
        races = self.store.load()

        new_race = {"id": str(uuid.uuid4()), **race_in.to_record(), "date": utc_now_iso()}
        races.append(new_race)
        self.store.save(races)

        logger.info(f"Race created: {new_race['id']} ({new_race['country']} / {new_race['stage']})")
        return new_race

    def update_race(self, race_id: str, race_in: Optional[RaceUpdate], racenet_only: bool = False) -> Race:
        if race_in is None:
            raise ValidationError("Missing updated race object!")

        races = self.store.load()
        index = _find_index(races, race_id)
        if index == -1:
            raise NotFoundError("Race not found")

        existing = races[index]
        changes = self._apply_personal_best_rules(existing, race_in.changes(), racenet_only)

        # O id nunca muda, mesmo que venha outro no corpo
        updated = {**existing, **changes, "date": utc_now_iso()}
        updated["id"] = existing["id"]

        races[index] = updated
        self.store.save(races)

        logger.info(f"Race updated: {race_id} (fields: {', '.join(sorted(changes)) or 'none'})")
        return updated

    def delete_race(self, race_id: str) -> Race:
        races = self.store.load()
        index = _find_index(races, race_id)
        if index == -1:
            raise NotFoundError("Race not found")

        removed = races.pop(index)
        self.store.save(races)

        logger.info(f"Race deleted: {race_id}")
        return removed

    def record_time(self, race_in: RaceCreate, racenet_only: bool = False) -> Dict[str, Any]:
        """
        Fluxo "adicionar ou melhorar": se já existe corrida com a mesma chave
        natural, só troca o tempo quando ele é melhor. Senão cria uma nova.
        """
        races = self.store.load()
        record = race_in.to_record()
        existing = self.find_by_natural_key(*(record[f] for f in NATURAL_KEY), races=races)

        if existing is None:
            if racenet_only:
                # Corrida nova: o tempo enviado também vale como referência
                record["racenet"] = record["racenet"] or record["time"]
            return {"race": self.create_race(RaceCreate(**record)), "created": True,
                    "improved": True, "difference": None}

        new_time = record["time"]
        if racenet_only:
            race = self.update_race(existing["id"], RaceUpdate(time=new_time), racenet_only=True)
            return {"race": race, "created": False, "improved": False, "difference": None}

        old_time = existing.get("time")
        difference = _safe_difference(new_time, old_time)
        changes = {"time": new_time}
        if record.get("racenet"):
            changes["racenet"] = record["racenet"]

        # Sem tempo anterior comparável, qualquer tempo é recorde
        improved = difference is None or difference.startswith("-")
        if not improved:
            if self.enforce_personal_best:
                raise ValidationError(f"New time {new_time} is not better than {old_time}")
            logger.info(f"Time {new_time} is not better than {old_time} for race {existing['id']}; keeping it")
            changes.pop("time")
            if not changes:
                return {"race": existing, "created": False, "improved": False, "difference": difference}

        race = self.update_race(existing["id"], RaceUpdate(**changes))
        return {"race": race, "created": False, "improved": improved, "difference": difference}

    def _apply_personal_best_rules(self, existing: Race, changes: Dict[str, Any], racenet_only: bool) -> Dict[str, Any]:
        new_time = changes.get("time")
        if new_time is None:
            return changes

        if racenet_only:
            # Só o tempo de referência muda, o tempo pessoal fica como está
            changes = {k: v for k, v in changes.items() if k != "time"}
            changes["racenet"] = new_time
            return changes

        old_time = existing.get("time")
        if not old_time:
            return changes

        try:
            better = race_time.is_better(new_time, old_time)
        except ValidationError:
            # Tempo salvo ilegível, não tem com o que comparar
            logger.warning(f"Stored time {old_time!r} of race {existing.get('id')} is invalid")
            return changes

        if not better:
            if self.enforce_personal_best:
                raise ValidationError(f"New time {new_time} is not better than {old_time}")
            logger.info(f"Non-improving time for race {existing.get('id')}: {new_time} (was {old_time})")
        return changes
