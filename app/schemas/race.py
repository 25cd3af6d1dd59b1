from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from enum import Enum

from app.core.errors import ParseError
from app.utils import race_time

class Surface(str, Enum):
    DRY = "Dry"
    WET = "Wet"

# Campos que formam a "chave natural" de uma corrida
NATURAL_KEY = ("country", "stage", "carClass", "car", "surface")


def _check_time(v, optional=False):
    if v is None:
        return v
    if optional and v == "":
        return None
    try:
        return race_time.validate(v)
    except ParseError as e:
        raise ValueError(e.message)


class RaceBase(BaseModel):
    country: str = Field(min_length=1)
    stage: str = Field(min_length=1)
    car_class: str = Field(alias="carClass", min_length=1)
    car: str = Field(min_length=1)
    surface: Surface
    time: str = Field(min_length=1)
    racenet: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return _check_time(v)

    @field_validator("racenet")
    @classmethod
    def check_racenet(cls, v):
        return _check_time(v, optional=True)

    def to_record(self) -> dict:
        """Campos como ficam salvos (camelCase, enum como texto)."""
        return self.model_dump(mode="json", by_alias=True)

class RaceCreate(RaceBase):
    pass

class RaceUpdate(BaseModel):
    """Atualização parcial: só os campos enviados são aplicados."""
    country: Optional[str] = Field(default=None, min_length=1)
    stage: Optional[str] = Field(default=None, min_length=1)
    car_class: Optional[str] = Field(default=None, alias="carClass", min_length=1)
    car: Optional[str] = Field(default=None, min_length=1)
    surface: Optional[Surface] = None
    time: Optional[str] = Field(default=None, min_length=1)
    racenet: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return _check_time(v)

    @field_validator("racenet")
    @classmethod
    def check_racenet(cls, v):
        return _check_time(v, optional=True)

    @model_validator(mode="after")
    def no_explicit_nulls(self):
        # Só o racenet pode ser apagado com null
        fields = type(self).model_fields
        nulls = [
            fields[name].alias or name
            for name in self.model_fields_set
            if name != "racenet" and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(sorted(nulls))}")
        return self

    def changes(self) -> dict:
        """Só os campos enviados, já no formato salvo."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

# Resposta: lê o que está salvo sem revalidar formato (registros antigos passam)
class RaceResponse(BaseModel):
    id: str
    country: Optional[str] = None
    stage: Optional[str] = None
    car_class: Optional[str] = Field(default=None, alias="carClass")
    car: Optional[str] = None
    surface: Optional[str] = None
    time: Optional[str] = None
    racenet: Optional[str] = None
    date: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

class RecordTimeResponse(BaseModel):
    race: RaceResponse
    created: bool
    improved: bool
    difference: Optional[str] = None
