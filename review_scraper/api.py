"""
Review scraper HTTP API.

    POST /api/v1/getReviews   form fields: platform, doctorUrl
    GET  /health

Usage:
    uvicorn review_scraper.api:app --host 0.0.0.0 --port 8000
or
    python runner.py --serve --port 8000

Every failure of the extraction pipeline is answered with the same generic
envelope; the internal error kind and detail only go to the log.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, FastAPI, Form, Request
from pydantic import BaseModel

from review_scraper.adapters.base import Review
from review_scraper.browser import Fetcher, dump_path_for
from review_scraper.config import get_settings
from review_scraper.dispatcher import available_platforms, run_extraction
from review_scraper.errors import ReviewScraperError

logger = logging.getLogger(__name__)

BAD_PARAMETERS_DESC = "Неверное значение параметров"
FETCH_FAILED_DESC = "Ошибка получения данных"


class ReviewOut(BaseModel):
    id: str
    name: str
    date: str
    message: str
    source: str


class ApiResponseData(BaseModel):
    error: Optional[int] = None
    desc: Optional[str] = None
    reviews: Optional[List[ReviewOut]] = None


class ApiResponse(BaseModel):
    error: int
    data: ApiResponseData


def make_success_response(reviews: List[Review]) -> ApiResponse:
    return ApiResponse(
        error=0,
        data=ApiResponseData(reviews=[ReviewOut(**r.to_dict()) for r in reviews]),
    )


def make_error_response(code: int, desc: str) -> ApiResponse:
    return ApiResponse(error=1, data=ApiResponseData(error=code, desc=desc))


router = APIRouter()


@router.post("/api/v1/getReviews", response_model=ApiResponse, response_model_exclude_none=True)
async def get_reviews(
    request: Request,
    platform: str = Form(""),
    doctor_url: str = Form("", alias="doctorUrl"),
):
    if not platform.strip() or not doctor_url.strip():
        return make_error_response(400, BAD_PARAMETERS_DESC)

    settings = get_settings()
    dump_path = dump_path_for(settings.dump_dir, platform.strip()) if settings.dump_dir else None

    try:
        reviews = await run_extraction(
            platform,
            doctor_url,
            request.app.state.fetcher,
            dump_path=dump_path,
        )
    except ReviewScraperError as e:
        logger.warning(
            "getReviews failed [%s] platform=%r url=%r: %s", e.kind.value, platform, doctor_url, e
        )
        return make_error_response(400, FETCH_FAILED_DESC)
    except Exception:
        logger.exception("getReviews crashed platform=%r url=%r", platform, doctor_url)
        return make_error_response(400, FETCH_FAILED_DESC)

    return make_success_response(reviews)


@router.get("/health")
async def health():
    return {"status": "ok", "platforms": available_platforms()}


def create_app(
    fetcher=None,
    headless: Optional[bool] = None,
    fetch_timeout: Optional[float] = None,
) -> FastAPI:
    """
    Builds the API application.

    Without an explicit `fetcher` one shared Chromium is created here from
    `headless` / `fetch_timeout` (falling back to settings), launched by the
    lifespan on startup and closed on shutdown.
    """
    settings = get_settings()
    owned = fetcher is None
    if owned:
        fetcher = Fetcher(
            headless=settings.headless if headless is None else headless,
            timeout=settings.fetch_timeout if fetch_timeout is None else fetch_timeout,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owned:
            await fetcher.start()
        logger.info("Serving platforms: %s", ", ".join(available_platforms()))
        try:
            yield
        finally:
            if owned:
                await fetcher.close()

    app = FastAPI(title="Doctor Review Scraper", lifespan=lifespan)
    app.state.fetcher = fetcher
    app.include_router(router)
    return app


app = create_app()
