# import_races.py
"""
Carrega um arquivo JSON de corridas (ex.: o antigo app/api/races/races.json)
para o store configurado. Corridas sem id ganham um novo.

Uso: python import_races.py races.json [--replace]
"""
import argparse
import json
import logging
import sys
import uuid

from app.api.deps import get_store
from app.core.errors import RaceTrackerError
from app.services.races import utc_now_iso

logger = logging.getLogger("import_races")


def import_races(path: str, replace: bool = False) -> int:
    with open(path, encoding="utf-8") as f:
        incoming = json.load(f)
    if not isinstance(incoming, list):
        raise ValueError(f"{path} must contain a JSON array of races")

    store = get_store()
    races = [] if replace else store.load()
    known_ids = {r.get("id") for r in races}

    if not all(isinstance(race, dict) for race in incoming):
        raise ValueError(f"{path} must contain a JSON array of race objects")

    added = 0
    for race in incoming:
        if not race.get("id") or race["id"] in known_ids:
            race["id"] = str(uuid.uuid4())
        race.setdefault("date", utc_now_iso())
        known_ids.add(race["id"])
        races.append(race)
        added += 1

    store.save(races)
    return added


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import races from a JSON file")
    parser.add_argument("path")
    parser.add_argument("--replace", action="store_true", help="replace the stored list instead of appending")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        added = import_races(args.path, replace=args.replace)
    except (OSError, ValueError, RaceTrackerError) as e:
        logger.error(f"Import failed: {e}")
        return 1

    logger.info(f"Imported {added} races")
    return 0


if __name__ == "__main__":
    sys.exit(main())
