import re

from app.core.errors import ParseError

_TIME_RE = re.compile(r"^(-)?([0-9]+)[:.]([0-9]+)[:.]([0-9]+)$")


def parse(display: str) -> int:
    """
    Converte "mm:ss.SSS" em milissegundos.
    Aceita ":" ou "." como separador (o front antigo gerava "mm:ss:SSS")
    e um "-" opcional na frente, para diferenças de tempo.
    """
    if not isinstance(display, str):
        raise ParseError(f"Invalid time: {display!r}")

    match = _TIME_RE.match(display.strip())
    if not match:
        raise ParseError(f"Invalid time: {display!r} (expected mm:ss.SSS)")

    sign, minutes, seconds, millis = match.groups()
    minutes, seconds, millis = int(minutes), int(seconds), int(millis)

    if seconds > 59 or millis > 999:
        raise ParseError(f"Invalid time: {display!r} (out of range)")

    total = minutes * 60000 + seconds * 1000 + millis
    return -total if sign else total


def format(ms: int) -> str:
    """Milissegundos -> "mm:ss.SSS". Negativos ganham "-" (usado nas diferenças)."""
    sign = "-" if ms < 0 else ""
    ms = abs(int(ms))

    minutes = ms // 60000
    seconds = (ms % 60000) // 1000
    millis = ms % 1000

    return f"{sign}{minutes:02d}:{seconds:02d}.{millis:03d}"


def validate(display: str) -> str:
    """Valida um tempo de corrida (positivo, minutos até 59). Devolve o texto sem espaços."""
    value = parse(display)
    if value < 0 or value >= 60 * 60000:
        raise ParseError(f"Invalid time: {display!r} (out of range)")
    return display.strip()


def is_better(new: str, old: str) -> bool:
    return parse(new) < parse(old)


def is_equal(a: str, b: str) -> bool:
    return parse(a) == parse(b)


def difference(new: str, old: str) -> str:
    # Negativo = o tempo novo é mais rápido
    return format(parse(new) - parse(old))
