from dataclasses import dataclass
from typing import Type

from pydantic import BaseModel

from .schemas import (
    CreditCardCreate,
    CreditCardUpdate,
    DebitCardCreate,
    DebitCardUpdate,
    ExpenseCreate,
    ExpenseUpdate,
    IncomeCreate,
    IncomeUpdate,
)


@dataclass(frozen=True)
class ResourceDefinition:
    """Everything the handlers and the persistence layer need to know about one record kind."""

    name: str
    collection: str
    label: str
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    id_key: str
    updated_key: str
    hidden_fields: tuple[str, ...] = ()
    masked_fields: tuple[str, ...] = ()
    stamps_created_at: bool = False


INCOME = ResourceDefinition(
    name="income",
    collection="income",
    label="Income",
    create_model=IncomeCreate,
    update_model=IncomeUpdate,
    id_key="incomeId",
    updated_key="updatedIncome",
)

EXPENSE = ResourceDefinition(
    name="expense",
    collection="expenses",
    label="Expense",
    create_model=ExpenseCreate,
    update_model=ExpenseUpdate,
    id_key="expenseId",
    updated_key="updatedExpense",
    stamps_created_at=True,
)

CREDIT_CARD = ResourceDefinition(
    name="credit_card",
    collection="creditcard",
    label="Credit card",
    create_model=CreditCardCreate,
    update_model=CreditCardUpdate,
    id_key="creditCardId",
    updated_key="updatedCreditCard",
    hidden_fields=("cvv",),
    masked_fields=("cardNumber",),
)

DEBIT_CARD = ResourceDefinition(
    name="debit_card",
    collection="debitcard",
    label="Debit card",
    create_model=DebitCardCreate,
    update_model=DebitCardUpdate,
    id_key="debitCardId",
    updated_key="updatedDebitCard",
    masked_fields=("cardNumber",),
)

RESOURCES: dict[str, ResourceDefinition] = {
    resource.name: resource for resource in (INCOME, EXPENSE, CREDIT_CARD, DEBIT_CARD)
}
