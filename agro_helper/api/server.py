import logging
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..application.services.advisory_service import AdvisoryError, AdvisoryGateway
from ..domain.economics import EconomicsInputError
from ..infra.config import get_config, require_api_key
from ..observability.logging_utils import (
    TRACE_HEADER,
    init_logging,
    log_event,
    trace_scope,
)
from ..observability.otel import init_otel, instrument_fastapi
from ..schemas.models import (
    AdviceRequest,
    AnalyzePlantRequest,
    EconomicsRequest,
    ErrorResponse,
    FarmEconomicsResult,
    HealthResponse,
    NutritionRequest,
    TextResponse,
    WeatherRequest,
)
from .limits import BodyLimitMiddleware

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_gateway() -> AdvisoryGateway:
    return AdvisoryGateway()


@asynccontextmanager
async def lifespan(_: FastAPI):
    cfg = get_config()
    logger.info(
        "Advisory backend ready (provider=%s, model=%s)", cfg.llm_provider, cfg.model_name
    )
    yield


def create_app() -> FastAPI:
    """
    Build the advisory backend.

    Raises:
        MissingApiKeyError: if the generation service key is not configured.
    """
    cfg = get_config()
    init_logging(log_path=cfg.log_path)
    require_api_key(cfg)
    init_otel()

    app = FastAPI(title="Agro Helper", lifespan=lifespan)
    # the last middleware added runs first: trace id, then CORS, then the body limit
    app.add_middleware(BodyLimitMiddleware, max_bytes=cfg.max_request_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def bind_trace_id(request: Request, call_next):
        with trace_scope(request.headers.get(TRACE_HEADER)) as trace_id:
            response = await call_next(request)
            response.headers[TRACE_HEADER] = trace_id
            return response

    @app.exception_handler(AdvisoryError)
    async def _advisory_error_handler(request: Request, exc: AdvisoryError):
        log_event("api_error", path=request.url.path, endpoint=exc.endpoint)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=exc.message).model_dump(exclude_none=True),
        )

    @app.exception_handler(EconomicsInputError)
    async def _economics_input_handler(request: Request, exc: EconomicsInputError):
        log_event("api_rejected", path=request.url.path, field=exc.field)
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(error=exc.message, field=exc.field).model_dump(
                exclude_none=True
            ),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at %s", request.url.path)
        return JSONResponse(
            status_code=500, content={"error": "Internal server error"}
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok", provider=cfg.llm_provider, model=cfg.model_name
        )

    @app.post("/api/advice", response_model=TextResponse)
    async def advice(
        body: AdviceRequest, gateway: AdvisoryGateway = Depends(get_gateway)
    ):
        text = await gateway.get_advice(body.history, body.new_prompt)
        return TextResponse(text=text)

    @app.post("/api/analyze-plant", response_model=TextResponse)
    async def analyze_plant(
        body: AnalyzePlantRequest, gateway: AdvisoryGateway = Depends(get_gateway)
    ):
        text = await gateway.analyze_image(body.prompt, body.image_base64, body.mime_type)
        return TextResponse(text=text)

    @app.post("/api/weather", response_model=TextResponse)
    async def weather(
        body: WeatherRequest, gateway: AdvisoryGateway = Depends(get_gateway)
    ):
        return TextResponse(text=await gateway.get_weather(body.location))

    @app.post("/api/nutrition", response_model=TextResponse)
    async def nutrition(
        body: NutritionRequest, gateway: AdvisoryGateway = Depends(get_gateway)
    ):
        text = await gateway.get_nutrition_plan(body.crop, body.soil, body.symptoms)
        return TextResponse(text=text)

    @app.post("/api/economics")
    async def economics(
        body: EconomicsRequest, gateway: AdvisoryGateway = Depends(get_gateway)
    ):
        result: FarmEconomicsResult = await gateway.get_economics(body.data)
        return JSONResponse(content=result.model_dump(by_alias=True, exclude_none=True))

    instrument_fastapi(app)
    return app
