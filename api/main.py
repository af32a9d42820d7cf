import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import PlainTextResponse
from fastapi.templating import Jinja2Templates

# Allow running from a checkout without installing the package
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from lastfm_embed.aggregator import DEFAULT_LIMIT, parse_limit  # type: ignore
from lastfm_embed.config_loader import Config  # type: ignore
from lastfm_embed.errors import (  # type: ignore
    ConfigurationError,
    InvalidLimitError,
    InvalidPeriodError,
    InvalidTypeError,
    MissingParameterError,
    UpstreamError,
)
from lastfm_embed.logging_utils import configure_logging  # type: ignore
from lastfm_embed.periods import DEFAULT_PERIOD  # type: ignore

from api.services.embed_service import EmbedService  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.getenv("EMBED_CONFIG_PATH", ROOT_DIR / "config.yaml"))
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
EMBED_HEADERS = {"Content-Security-Policy": "frame-ancestors *"}

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

embed_service: Optional[EmbedService] = None


def _init_services() -> EmbedService:
    """Initialize shared services once for the API process."""
    global embed_service
    if embed_service:
        return embed_service

    config = Config(str(CONFIG_PATH))
    configure_logging(level=config.log_level, log_file=config.log_file)
    embed_service = EmbedService(config)
    return embed_service


def get_embed_service() -> EmbedService:
    return _init_services()


@asynccontextmanager
async def lifespan(_: FastAPI):
    _init_services()
    yield
    if embed_service:
        embed_service.close()


app = FastAPI(title="Last.fm Embed", lifespan=lifespan)


def _text(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


@app.exception_handler(MissingParameterError)
async def _missing_parameter(_: Request, exc: MissingParameterError) -> PlainTextResponse:
    return _text("type and user are required", 400)


@app.exception_handler(InvalidLimitError)
async def _invalid_limit(_: Request, exc: InvalidLimitError) -> PlainTextResponse:
    return _text("invalid limit", 400)


@app.exception_handler(InvalidPeriodError)
async def _invalid_period(_: Request, exc: InvalidPeriodError) -> PlainTextResponse:
    return _text("invalid period", 400)


@app.exception_handler(InvalidTypeError)
async def _invalid_type(_: Request, exc: InvalidTypeError) -> PlainTextResponse:
    return _text("invalid type", 400)


@app.exception_handler(ConfigurationError)
async def _configuration_error(_: Request, exc: ConfigurationError) -> PlainTextResponse:
    logger.error(f"Configuration error: {exc}")
    return _text("invalid environment variable", 500)


@app.exception_handler(UpstreamError)
async def _upstream_error(_: Request, exc: UpstreamError) -> PlainTextResponse:
    logger.error(f"Last.fm list call failed: {exc}")
    return _text("upstream request failed", 502)


@app.exception_handler(404)
async def _not_found(_: Request, exc: Exception) -> PlainTextResponse:
    return _text("not Found", 404)


@app.get("/embed/tracks")
def embed_tracks(
    request: Request,
    mode: Optional[str] = Query(None, alias="type"),
    user: Optional[str] = Query(None),
    limit: str = Query(DEFAULT_LIMIT),
    period: str = Query(DEFAULT_PERIOD),
    service: EmbedService = Depends(get_embed_service),
):
    """Render the recently played / top tracks widget for a Last.fm user."""
    if not mode or not user:
        raise MissingParameterError("type and user are required")

    service.ensure_configured()
    parsed_limit = parse_limit(limit)

    payload = service.build_widget(mode, user, parsed_limit, period)
    return templates.TemplateResponse(
        request,
        "tracks.html",
        {"payload": payload},
        headers=EMBED_HEADERS,
    )
