from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import Settings, settings
from .errors import FinanceApiError, StoreError
from .handlers import create_record, delete_record, list_records, update_record
from .logging_setup import configure_logging
from .persistence import Persistence, get_persistence
from .resources import CREDIT_CARD, DEBIT_CARD, EXPENSE, INCOME
from .schemas import (
    ApiErrorDetail,
    ApiErrorPayload,
    ApiErrorResponse,
    CreditCardCreated,
    CreditCardRecord,
    CreditCardUpdated,
    DebitCardCreated,
    DebitCardRecord,
    DebitCardUpdated,
    ExpenseCreated,
    ExpenseRecord,
    ExpenseUpdated,
    HealthResponse,
    IncomeCreated,
    IncomeRecord,
    IncomeUpdated,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_store(request: Request) -> Persistence:
    return request.app.state.persistence


def build_error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[ApiErrorDetail] | None = None,
) -> JSONResponse:
    payload = ApiErrorResponse(error=ApiErrorPayload(code=code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


def _error_details(errors: list[dict[str, Any]]) -> list[ApiErrorDetail]:
    details: list[ApiErrorDetail] = []
    for err in errors:
        loc = ".".join(str(item) for item in err.get("loc", []) if item != "body")
        details.append(ApiErrorDetail(field=loc or "body", message=err.get("msg", "validation error")))
    return details


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _error_details(exc.errors())
    logger.info("validation_failed", path=request.url.path, fields=[d.field for d in details])
    return build_error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request payload", details)


async def payload_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    details = _error_details(exc.errors())
    logger.info("validation_failed", path=request.url.path, fields=[d.field for d in details])
    return build_error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request payload", details)


async def finance_api_exception_handler(request: Request, exc: FinanceApiError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error("request_failed", path=request.url.path, code=exc.code, error=str(exc))
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, error=str(exc))
    return build_error_response(exc.status_code, exc.code, exc.message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return build_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error")


@router.get("/")
async def welcome() -> str:
    return "Welcome to the Financial API"


@router.get("/health", response_model=HealthResponse)
def health(persistence: Persistence = Depends(get_store)) -> Any:
    if not persistence.ping():
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"status": "unavailable"})
    return HealthResponse(status="ok")


# Income


@router.get("/income/{user_id}", response_model=list[IncomeRecord], summary="Get all income for a user")
def get_all_income(user_id: str, persistence: Persistence = Depends(get_store)) -> list[dict[str, Any]]:
    return list_records(persistence, INCOME, user_id)


@router.post("/income/add", response_model=IncomeCreated, status_code=201, summary="Add new income")
def add_income(payload: dict[str, Any] = Body(...), persistence: Persistence = Depends(get_store)) -> dict[str, Any]:
    return create_record(persistence, INCOME, payload)


@router.put("/income/update/{record_id}", response_model=IncomeUpdated, summary="Update an existing income entry")
def update_income(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    persistence: Persistence = Depends(get_store),
) -> dict[str, Any]:
    return update_record(persistence, INCOME, record_id, payload)


@router.delete("/income/delete/{record_id}", status_code=204, summary="Delete an existing income entry")
def delete_income(record_id: str, persistence: Persistence = Depends(get_store)) -> Response:
    delete_record(persistence, INCOME, record_id)
    return Response(status_code=204)


# Expenses


@router.get("/expenses/{user_id}", response_model=list[ExpenseRecord], summary="Get all expenses for a user")
def get_all_expenses(user_id: str, persistence: Persistence = Depends(get_store)) -> list[dict[str, Any]]:
    return list_records(persistence, EXPENSE, user_id)


@router.post("/expenses/add", response_model=ExpenseCreated, status_code=201, summary="Add a new expense")
def add_expense(payload: dict[str, Any] = Body(...), persistence: Persistence = Depends(get_store)) -> dict[str, Any]:
    return create_record(persistence, EXPENSE, payload)


@router.put("/expenses/update/{record_id}", response_model=ExpenseUpdated, summary="Update an existing expense")
def update_expense(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    persistence: Persistence = Depends(get_store),
) -> dict[str, Any]:
    return update_record(persistence, EXPENSE, record_id, payload)


@router.delete("/expenses/delete/{record_id}", status_code=204, summary="Delete an existing expense")
def delete_expense(record_id: str, persistence: Persistence = Depends(get_store)) -> Response:
    delete_record(persistence, EXPENSE, record_id)
    return Response(status_code=204)


# Credit cards


@router.get("/creditcards/{user_id}", response_model=list[CreditCardRecord], summary="Get all credit cards for a user")
def get_all_credit_cards(user_id: str, persistence: Persistence = Depends(get_store)) -> list[dict[str, Any]]:
    return list_records(persistence, CREDIT_CARD, user_id)


@router.post("/creditcards/add", response_model=CreditCardCreated, status_code=201, summary="Add a new credit card")
def add_credit_card(payload: dict[str, Any] = Body(...), persistence: Persistence = Depends(get_store)) -> dict[str, Any]:
    return create_record(persistence, CREDIT_CARD, payload)


@router.put("/creditcards/update/{record_id}", response_model=CreditCardUpdated, summary="Update an existing credit card")
def update_credit_card(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    persistence: Persistence = Depends(get_store),
) -> dict[str, Any]:
    return update_record(persistence, CREDIT_CARD, record_id, payload)


@router.delete("/creditcards/delete/{record_id}", status_code=204, summary="Delete an existing credit card")
def delete_credit_card(record_id: str, persistence: Persistence = Depends(get_store)) -> Response:
    delete_record(persistence, CREDIT_CARD, record_id)
    return Response(status_code=204)


# Debit cards


@router.get("/debitcards/{user_id}", response_model=list[DebitCardRecord], summary="Get all debit cards for a user")
def get_all_debit_cards(user_id: str, persistence: Persistence = Depends(get_store)) -> list[dict[str, Any]]:
    return list_records(persistence, DEBIT_CARD, user_id)


@router.post("/debitcards/add", response_model=DebitCardCreated, status_code=201, summary="Add a new debit card")
def add_debit_card(payload: dict[str, Any] = Body(...), persistence: Persistence = Depends(get_store)) -> dict[str, Any]:
    return create_record(persistence, DEBIT_CARD, payload)


@router.put("/debitcards/update/{record_id}", response_model=DebitCardUpdated, summary="Update an existing debit card")
def update_debit_card(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    persistence: Persistence = Depends(get_store),
) -> dict[str, Any]:
    return update_record(persistence, DEBIT_CARD, record_id, payload)


@router.delete("/debitcards/delete/{record_id}", status_code=204, summary="Delete an existing debit card")
def delete_debit_card(record_id: str, persistence: Persistence = Depends(get_store)) -> Response:
    delete_record(persistence, DEBIT_CARD, record_id)
    return Response(status_code=204)


def create_app(persistence: Persistence | None = None, config: Settings = settings) -> FastAPI:
    """Build the API around one store connection opened at startup and closed at shutdown.

    Tests pass their own ``persistence``; otherwise the backend is chosen from ``config``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.log_level, config.log_json)
        backend = persistence or get_persistence(config)
        backend.start()
        app.state.persistence = backend
        try:
            yield
        finally:
            backend.close()

    app = FastAPI(
        title="Finance Buddy API",
        version="1.0.0",
        description="Income, expense, credit card and debit card records scoped to a user.",
        docs_url="/api-docs",
        lifespan=lifespan,
    )
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValidationError, payload_validation_exception_handler)
    app.add_exception_handler(FinanceApiError, finance_api_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(router)
    return app


app = create_app()
