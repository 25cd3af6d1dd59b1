import logging
import re
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

import pytz
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from app.core.errors import ExportError, NotFoundError

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Cores pastel por coluna (repete se tiver mais colunas que cores)
COLUMN_COLORS = ["FFEBEE", "E8F5E9", "E3F2FD", "FFF3E0", "F3E5F5"]
MIN_COLUMN_WIDTH = 10
ORDINAL_HEADER = "#"

_THIN = Side(style="thin")
_BORDER = Border(top=_THIN, left=_THIN, bottom=_THIN, right=_THIN)
_CENTER = Alignment(horizontal="center", vertical="center")
_HEADER_FONT = Font(bold=True, color="000000")


def format_header(key: str) -> str:
    """carClass -> Car Class"""
    spaced = re.sub(r"([a-z])([A-Z])", r"\1 \2", key)
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split(" "))


def format_long_date(value: Any, timezone: str = "UTC") -> Any:
    """ISO -> "October 19, 2026" no fuso configurado. Se não der para ler, devolve como veio."""
    if not isinstance(value, str) or not value:
        return value
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    local = parsed.astimezone(pytz.timezone(timezone))
    return f"{local:%B} {local.day}, {local.year}"


def _map_race(race: Dict[str, Any], timezone: str) -> Dict[str, Any]:
    # Tira o id e joga a data formatada para o fim
    mapped = {k: v for k, v in race.items() if k not in ("id", "date")}
    mapped["date"] = format_long_date(race.get("date"), timezone)
    return mapped


def export_races(races: Optional[List[Dict[str, Any]]], timezone: str = "UTC") -> bytes:
    if not races:
        raise NotFoundError("No race data found")

    try:
        mapped = [_map_race(race, timezone) for race in races]

        wb = Workbook()
        ws = wb.active
        ws.title = "Races"

        # Colunas saem das chaves do primeiro registro
        keys = list(mapped[0].keys())
        ws.append([ORDINAL_HEADER] + [format_header(k) for k in keys])
        for i, race in enumerate(mapped, start=1):
            ws.append([i] + [_cell_value(race.get(k)) for k in keys])

        for col_index in range(1, len(keys) + 2):
            fill = PatternFill(
                fill_type="solid",
                fgColor=COLUMN_COLORS[(col_index - 1) % len(COLUMN_COLORS)],
            )
            max_length = MIN_COLUMN_WIDTH

            for row_index in range(1, ws.max_row + 1):
                cell = ws.cell(row=row_index, column=col_index)
                cell.fill = fill
                cell.border = _BORDER
                cell.alignment = _CENTER
                if row_index == 1:
                    cell.font = _HEADER_FONT

                text = "" if cell.value is None else str(cell.value)
                max_length = max(max_length, len(text))

            ws.column_dimensions[get_column_letter(col_index)].width = max_length + 2

        for row_index in range(2, ws.max_row + 1):
            ws.row_dimensions[row_index].height = 22
        ws.row_dimensions[1].height = 25

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()
    except Exception as e:
        logger.exception("Failed to create Excel export")
        raise ExportError("Failed to generate export") from e


def _cell_value(value: Any) -> Any:
    # Células só aceitam valores simples
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
