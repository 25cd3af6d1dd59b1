class RaceTrackerError(Exception):
    """Erro base da API. Cada subclasse sabe qual status HTTP representa."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RaceTrackerError):
    status_code = 400


class ParseError(ValidationError):
    """Tempo em formato inválido (esperado mm:ss.SSS)"""


class AccessDeniedError(RaceTrackerError):
    status_code = 401


class NotFoundError(RaceTrackerError):
    status_code = 404


class StorageError(RaceTrackerError):
    status_code = 500


class ExportError(RaceTrackerError):
    status_code = 500
