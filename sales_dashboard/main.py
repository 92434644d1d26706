import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .logic import (
    conic_gradient,
    month_options,
    parse_list_query,
    parse_month,
    pie_slices,
)
from .models import ListQuery
from .repo import StoreError, TransactionStore
from .seed import SeedError, load_seed
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))

router = APIRouter()


def get_store(request: Request) -> TransactionStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _resolve_month(month: str | None, settings: Settings) -> int:
    try:
        return parse_month(month, settings.default_month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _resolve_list_query(
    month: str | None,
    search: str | None,
    page: str | None,
    per_page: str | None,
    settings: Settings,
) -> ListQuery:
    try:
        return parse_list_query(
            month=month,
            search=search,
            page=page,
            per_page=per_page,
            default_month=settings.default_month,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _failure(message: str) -> PlainTextResponse:
    logger.exception(message)
    return PlainTextResponse(message, status_code=500)


@router.get("/initialize-db", response_class=PlainTextResponse)
def initialize_db(
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    try:
        load_seed(store, settings.seed_url, timeout=settings.seed_timeout)
    except (SeedError, StoreError):
        return _failure("Error initializing database")
    return PlainTextResponse("Database initialized successfully")


@router.get("/transactions")
def list_transactions(
    month: str | None = None,
    search: str | None = None,
    page: str | None = None,
    per_page: str | None = Query(default=None, alias="perPage"),
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    query = _resolve_list_query(month, search, page, per_page, settings)
    try:
        transactions = store.list_transactions(query)
    except StoreError:
        return _failure("Error fetching transactions")
    return [t.to_dict() for t in transactions]


@router.get("/statistics")
def statistics(
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        return store.statistics(resolved_month)
    except StoreError:
        return _failure("Error fetching statistics")


@router.get("/bar-chart")
def bar_chart(
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        return store.bar_chart(resolved_month)
    except StoreError:
        return _failure("Error fetching bar chart data")


@router.get("/pie-chart")
def pie_chart(
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        return store.pie_chart(resolved_month)
    except StoreError:
        return _failure("Error fetching pie chart data")


@router.get("/combined-data")
async def combined_data(
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        transactions, stats, buckets, categories = await asyncio.gather(
            run_in_threadpool(store.month_transactions, resolved_month),
            run_in_threadpool(store.statistics, resolved_month),
            run_in_threadpool(store.bar_chart, resolved_month),
            run_in_threadpool(store.pie_chart, resolved_month),
        )
    except StoreError:
        return _failure("Error fetching combined data")
    return {
        "transactions": [t.to_dict() for t in transactions],
        "statistics": stats,
        "barChart": buckets,
        "pieChart": categories,
    }


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    month: str | None = None,
    settings: Settings = Depends(get_app_settings),
):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "month": _resolve_month(month, settings),
            "months": month_options(),
            "reference_year": settings.reference_year,
        },
    )


@router.get("/partials/transactions", response_class=HTMLResponse)
def transactions_partial(
    request: Request,
    month: str | None = None,
    search: str | None = None,
    page: str | None = None,
    per_page: str | None = Query(default=None, alias="perPage"),
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    query = _resolve_list_query(month, search, page, per_page, settings)
    try:
        transactions = store.list_transactions(query)
    except StoreError:
        return _failure("Error fetching transactions")
    return templates.TemplateResponse(
        request,
        "_transactions_table.html",
        {
            "transactions": transactions,
            "query": query,
            "has_prev": query.page > 1,
            "has_next": len(transactions) == query.per_page,
        },
    )


@router.get("/partials/statistics", response_class=HTMLResponse)
def statistics_partial(
    request: Request,
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        stats = store.statistics(resolved_month)
    except StoreError:
        return _failure("Error fetching statistics")
    return templates.TemplateResponse(
        request,
        "_statistics.html",
        {"stats": stats, "month_name": month_options()[resolved_month - 1][1]},
    )


@router.get("/partials/bar-chart", response_class=HTMLResponse)
def bar_chart_partial(
    request: Request,
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        buckets = store.bar_chart(resolved_month)
    except StoreError:
        return _failure("Error fetching bar chart data")
    peak = max((b["count"] for b in buckets), default=0)
    return templates.TemplateResponse(
        request,
        "_bar_chart.html",
        {
            "buckets": [
                {**b, "height": round(b["count"] / peak * 100, 1) if peak else 0}
                for b in buckets
            ],
        },
    )


@router.get("/partials/pie-chart", response_class=HTMLResponse)
def pie_chart_partial(
    request: Request,
    month: str | None = None,
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    resolved_month = _resolve_month(month, settings)
    try:
        slices = pie_slices(store.pie_chart(resolved_month))
    except StoreError:
        return _failure("Error fetching pie chart data")
    return templates.TemplateResponse(
        request,
        "_pie_chart.html",
        {"slices": slices, "gradient": conic_gradient(slices)},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = TransactionStore(
            settings.db_path, reference_year=settings.reference_year
        )
        store.open()
        app.state.store = store
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="Sales Dashboard", lifespan=lifespan)
    app.state.settings = settings
    app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")
    app.include_router(router)
    return app


app = create_app()
