import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .services.records import ensure_utc, utc_now

CARD_NUMBER_PATTERN = re.compile(r"^\d{16}$")


class ApiErrorDetail(BaseModel):
    field: str
    message: str


class ApiErrorPayload(BaseModel):
    code: str
    message: str
    details: list[ApiErrorDetail] = Field(default_factory=list)


class ApiErrorResponse(BaseModel):
    error: ApiErrorPayload


class HealthResponse(BaseModel):
    status: str


def _text_from_number(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _require_card_number(value: str) -> str:
    if not CARD_NUMBER_PATTERN.match(value):
        raise ValueError("card number must be exactly 16 digits")
    return value


def _require_future(value: datetime) -> datetime:
    value = ensure_utc(value)
    if value <= utc_now():
        raise ValueError("must be in the future")
    return value


class RecordPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @field_validator("*", mode="before")
    @classmethod
    def reject_bool_numbers(cls, value: Any, info: ValidationInfo) -> Any:
        # lax float parsing would otherwise store true/false as 1.0/0.0
        if isinstance(value, bool) and cls.model_fields[info.field_name].annotation is float:
            raise ValueError("must be a number")
        return value


class IncomeCreate(RecordPayload):
    userId: str = Field(min_length=1)
    amount: float = Field(gt=0, allow_inf_nan=False)
    source: str = Field(min_length=1)


class IncomeUpdate(RecordPayload):
    amount: float = Field(gt=0, allow_inf_nan=False)
    source: str = Field(min_length=1)


class ExpenseCreate(RecordPayload):
    userId: str = Field(min_length=1)
    amount: float = Field(allow_inf_nan=False)
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    dateIncurred: datetime

    @field_validator("dateIncurred")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ExpenseUpdate(RecordPayload):
    amount: float = Field(gt=0, allow_inf_nan=False)
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    dateIncurred: datetime

    @field_validator("dateIncurred")
    @classmethod
    def validate_not_future(cls, value: datetime) -> datetime:
        value = ensure_utc(value)
        if value > utc_now():
            raise ValueError("must not be in the future")
        return value


class CreditCardUpdate(RecordPayload):
    cardNumber: str
    cardholderName: str = Field(min_length=1)
    expirationDate: datetime
    cvv: str = Field(min_length=1)
    creditLimit: float = Field(ge=0, allow_inf_nan=False)
    currentBalance: float = Field(ge=0, allow_inf_nan=False)

    @field_validator("cardNumber", "cvv", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_from_number(value)

    @field_validator("cardNumber")
    @classmethod
    def validate_card_number(cls, value: str) -> str:
        return _require_card_number(value)

    @field_validator("expirationDate")
    @classmethod
    def validate_expiration(cls, value: datetime) -> datetime:
        return _require_future(value)


class CreditCardCreate(CreditCardUpdate):
    userId: str = Field(min_length=1)


class DebitCardCreate(RecordPayload):
    userId: str = Field(min_length=1)
    cardNumber: str
    cardholderName: str = Field(min_length=1)
    expirationDate: datetime
    accountBalance: float = Field(ge=0, allow_inf_nan=False)
    bankName: str = Field(min_length=1)

    @field_validator("cardNumber", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_from_number(value)

    @field_validator("cardNumber")
    @classmethod
    def validate_card_number(cls, value: str) -> str:
        return _require_card_number(value)

    @field_validator("expirationDate")
    @classmethod
    def validate_expiration(cls, value: datetime) -> datetime:
        return _require_future(value)


class DebitCardUpdate(RecordPayload):
    # Presence only: no 16-digit or future-date check, the number is still masked on write.
    cardNumber: str = Field(min_length=1)
    cardholderName: str = Field(min_length=1)
    expirationDate: datetime
    accountBalance: float = Field(ge=0, allow_inf_nan=False)
    bankName: Optional[str] = Field(default=None, min_length=1)

    @field_validator("cardNumber", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_from_number(value)

    @field_validator("expirationDate")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class IncomeRecord(BaseModel):
    id: str
    userId: str
    amount: float
    source: str


class ExpenseRecord(BaseModel):
    id: str
    userId: str
    amount: float
    category: str
    description: str
    dateIncurred: datetime
    createdAt: Optional[datetime] = None


class CreditCardRecord(BaseModel):
    id: str
    userId: str
    cardNumber: str
    cardholderName: str
    expirationDate: datetime
    creditLimit: float
    currentBalance: float


class DebitCardRecord(BaseModel):
    id: str
    userId: str
    cardNumber: str
    cardholderName: str
    expirationDate: datetime
    accountBalance: float
    bankName: Optional[str] = None


class IncomeCreated(BaseModel):
    message: str
    id: str
    incomeId: str


class IncomeUpdated(BaseModel):
    message: str
    updatedIncome: IncomeRecord


class ExpenseCreated(BaseModel):
    message: str
    id: str
    expenseId: str


class ExpenseUpdated(BaseModel):
    message: str
    updatedExpense: ExpenseRecord


class CreditCardCreated(BaseModel):
    message: str
    id: str
    creditCardId: str


class CreditCardUpdated(BaseModel):
    message: str
    updatedCreditCard: CreditCardRecord


class DebitCardCreated(BaseModel):
    message: str
    id: str
    debitCardId: str


class DebitCardUpdated(BaseModel):
    message: str
    updatedDebitCard: DebitCardRecord
