from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.api import deps
from app.core.config import settings
from app.schemas.race import RaceCreate, RaceUpdate, RaceResponse, RecordTimeResponse, Surface
from app.services.export import XLSX_MEDIA_TYPE, export_races
from app.services.races import RaceService

router = APIRouter(dependencies=[Depends(deps.check_access_key)])

# --- 1. Exportação (antes das rotas com {race_id}) ---

@router.get("/export")
def export_races_xlsx(service: RaceService = Depends(deps.get_race_service)):
    """Gera o .xlsx com todas as corridas salvas."""
    content = export_races(service.store.fetch(), timezone=settings.EXPORT_TIMEZONE)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="races.xlsx"'},
    )

# --- 2. CRUD de Corridas ---

@router.get("", response_model=List[RaceResponse])
def list_races(
    country: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    car_class: Optional[str] = Query(None, alias="carClass"),
    car: Optional[str] = Query(None),
    surface: Optional[Surface] = Query(None),
    service: RaceService = Depends(deps.get_race_service),
):
    filters = {
        "country": country,
        "stage": stage,
        "carClass": car_class,
        "car": car,
        "surface": surface.value if surface else None,
    }
    return service.list_races(filters)

@router.post("", response_model=RaceResponse, status_code=status.HTTP_201_CREATED)
def create_race(race_in: RaceCreate, service: RaceService = Depends(deps.get_race_service)):
    return service.create_race(race_in)

@router.post("/best", response_model=RecordTimeResponse)
def record_time(
    race_in: RaceCreate,
    response: Response,
    racenet_only: bool = Query(False, alias="racenetOnly"),
    service: RaceService = Depends(deps.get_race_service),
):
    """Cria a corrida ou atualiza o tempo só se for recorde pessoal."""
    result = service.record_time(race_in, racenet_only=racenet_only)
    if result["created"]:
        response.status_code = status.HTTP_201_CREATED
    return result

@router.put("/{race_id}", response_model=RaceResponse)
def update_race(
    race_id: str,
    race_in: Optional[RaceUpdate] = Body(None),
    racenet_only: bool = Query(False, alias="racenetOnly"),
    service: RaceService = Depends(deps.get_race_service),
):
    return service.update_race(race_id, race_in, racenet_only=racenet_only)

@router.delete("/{race_id}", response_model=RaceResponse)
def delete_race(race_id: str, service: RaceService = Depends(deps.get_race_service)):
    return service.delete_race(race_id)
