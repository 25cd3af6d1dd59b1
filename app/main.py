from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings
from app.core.errors import RaceTrackerError
from app.api.v1.router import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

origins = [
    "http://localhost:3000",
    settings.FRONTEND_URL,
]
origins = list(set(origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Tradução dos erros para {"error": mensagem} ---

@app.exception_handler(RaceTrackerError)
async def race_tracker_error_handler(request: Request, exc: RaceTrackerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    message = describe_validation_errors(exc.errors())
    logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
    return JSONResponse(status_code=400, content={"error": message})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def describe_validation_errors(errors) -> str:
    """
    Junta os erros do pydantic numa mensagem só.
    Campos ausentes ou vazios aparecem pelo nome: "Missing required fields: car, time".
    """
    missing = []
    invalid = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc)
        if not field:
            if err.get("type") == "missing":
                return "Missing request body"
            invalid.append(err.get("msg", "invalid value"))
            continue
        if err.get("type") in ("missing", "string_too_short") or err.get("input") in (None, ""):
            if field not in missing:
                missing.append(field)
        else:
            invalid.append(f"{field}: {err.get('msg')}")

    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    return f"Invalid fields: {'; '.join(invalid)}"


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def root():
    return {"message": f"{settings.PROJECT_NAME} is running ({settings.STORE_BACKEND} store)"}
