from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

# Monetary fields are integer milliunits (1000 = one major currency unit).


class CurrencyFormat(BaseModel):
    iso_code: str = "USD"
    example_format: Optional[str] = None
    decimal_digits: int = 2
    decimal_separator: str = "."
    symbol_first: bool = True
    group_separator: str = ","
    currency_symbol: str = "$"
    display_symbol: bool = True


USD_FORMAT = CurrencyFormat()


class User(BaseModel):
    id: str


class BudgetSummary(BaseModel):
    id: str
    name: str
    last_modified_on: Optional[str] = None
    first_month: Optional[str] = None
    last_month: Optional[str] = None
    currency_format: Optional[CurrencyFormat] = None


class Account(BaseModel):
    id: str
    name: str = ""
    type: Optional[str] = None
    on_budget: bool = True
    closed: bool = False
    balance: int = 0
    cleared_balance: Optional[int] = None
    uncleared_balance: Optional[int] = None
    note: Optional[str] = None
    deleted: bool = False


class Transaction(BaseModel):
    id: str
    date: date
    amount: int
    memo: Optional[str] = None
    cleared: str = "uncleared"  # cleared, uncleared or reconciled
    approved: bool = False
    deleted: bool = False
    account_id: Optional[str] = None
    account_name: str = ""
    payee_id: Optional[str] = None
    payee_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None


class Category(BaseModel):
    id: str
    name: str
    category_group_id: Optional[str] = None
    hidden: bool = False
    deleted: bool = False
    budgeted: int = 0
    activity: int = 0
    balance: int = 0


class CategoryGroup(BaseModel):
    id: str
    name: str
    hidden: bool = False
    deleted: bool = False
    categories: List[Category] = Field(default_factory=list)


class Month(BaseModel):
    month: date
    note: Optional[str] = None
    income: int = 0
    budgeted: int = 0
    activity: int = 0
    to_be_budgeted: int = 0
    age_of_money: Optional[int] = None
    deleted: bool = False
    categories: List[Category] = Field(default_factory=list)


class Payee(BaseModel):
    id: str
    name: str
    transfer_account_id: Optional[str] = None
    deleted: bool = False


class TransactionRequest(BaseModel):
    """Body of ``POST /budgets/{budget_id}/transactions`` (under ``transaction``)."""
    account_id: str
    date: str  # ISO 8601 calendar date
    amount: int
    payee_name: Optional[str] = None
    category_id: Optional[str] = None
    memo: Optional[str] = None
    approved: bool = True
