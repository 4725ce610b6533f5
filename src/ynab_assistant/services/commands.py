"""Named commands for scripted and interactive use.

Each command name maps to its own parameter model and handler. Parameters may
use snake_case or camelCase keys (``budget_id`` or ``budgetId``).
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional, Union

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr
from pydantic.alias_generators import to_camel

from ynab_assistant.core.errors import UnknownCommandError, ValidationError
from ynab_assistant.logger import get_logger
from ynab_assistant.services.assistant import BudgetAssistant, SessionContext

logger = get_logger(__name__)


class CommandParams(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class BudgetParams(CommandParams):
    budget_id: Optional[str] = None


class TransactionsParams(BudgetParams):
    limit: Optional[int] = Field(default=None, ge=0)
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    since_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("since_date", "sinceDate", "since"),
    )


class MonthParams(BudgetParams):
    month: str = "current"


class TransactionInput(CommandParams):
    account_id: Optional[str] = None
    # Strict so JSON booleans are rejected instead of read as 1 or 0
    amount: Optional[Union[StrictInt, StrictFloat, StrictStr]] = None
    payee_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("payee_name", "payeeName", "payee"),
    )
    date: Optional[str] = None
    category_id: Optional[str] = None
    memo: Optional[str] = None
    approved: Optional[bool] = None


class AddTransactionParams(BudgetParams):
    transaction: TransactionInput


class SearchPayeesParams(BudgetParams):
    query: str


CommandHandler = Callable[[BudgetAssistant, SessionContext, Any], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class Command:
    name: str
    description: str
    params_model: type[CommandParams]
    handler: CommandHandler


async def _get_budgets(
    assistant: BudgetAssistant, context: SessionContext, params: BudgetParams
) -> dict[str, Any]:
    return await assistant.get_budgets(context)


async def _get_accounts(
    assistant: BudgetAssistant, context: SessionContext, params: BudgetParams
) -> dict[str, Any]:
    return await assistant.get_accounts(context, params.budget_id)


async def _get_transactions(
    assistant: BudgetAssistant, context: SessionContext, params: TransactionsParams
) -> dict[str, Any]:
    return await assistant.get_transactions(
        context,
        params.budget_id,
        limit=params.limit,
        account_id=params.account_id,
        category_id=params.category_id,
        since_date=params.since_date,
    )


async def _get_categories(
    assistant: BudgetAssistant, context: SessionContext, params: BudgetParams
) -> dict[str, Any]:
    return await assistant.get_categories(context, params.budget_id)


async def _get_summary(
    assistant: BudgetAssistant, context: SessionContext, params: BudgetParams
) -> dict[str, Any]:
    return await assistant.get_summary(context, params.budget_id)


async def _get_month(
    assistant: BudgetAssistant, context: SessionContext, params: MonthParams
) -> dict[str, Any]:
    return await assistant.get_month(context, params.budget_id, params.month)


async def _add_transaction(
    assistant: BudgetAssistant, context: SessionContext, params: AddTransactionParams
) -> dict[str, Any]:
    tx = params.transaction
    return await assistant.add_transaction(
        context,
        params.budget_id,
        account_id=tx.account_id,
        amount=tx.amount,
        payee_name=tx.payee_name,
        date=tx.date,
        category_id=tx.category_id,
        memo=tx.memo,
        approved=tx.approved,
    )


async def _search_payees(
    assistant: BudgetAssistant, context: SessionContext, params: SearchPayeesParams
) -> dict[str, Any]:
    return await assistant.search_payees(context, params.query, params.budget_id)


COMMANDS: dict[str, Command] = {
    command.name: command
    for command in (
        Command("get_budgets", "List budgets and the session default", BudgetParams, _get_budgets),
        Command("get_accounts", "List accounts with balances", BudgetParams, _get_accounts),
        Command(
            "get_transactions",
            "Recent approved transactions (limit, accountId, categoryId, since)",
            TransactionsParams,
            _get_transactions,
        ),
        Command("get_categories", "Visible category groups", BudgetParams, _get_categories),
        Command("get_summary", "Budget, current month and balances", BudgetParams, _get_summary),
        Command("get_month", "One budget month (month: current or YYYY-MM)", MonthParams, _get_month),
        Command(
            "add_transaction",
            "Create a transaction (transaction: accountId, amount, payee, ...)",
            AddTransactionParams,
            _add_transaction,
        ),
        Command("search_payees", "Find payees by name (query)", SearchPayeesParams, _search_payees),
    )
}


def get_command(name: str) -> Command:
    command = COMMANDS.get(name)
    if command is None:
        raise UnknownCommandError(name)
    return command


def parse_params(command: Command, params: dict[str, Any] | None) -> CommandParams:
    if params is not None and not isinstance(params, dict):
        raise ValidationError(f"{command.name}: parameters must be an object")
    try:
        return command.params_model.model_validate(params or {})
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'params'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"{command.name}: {problems}") from exc


async def execute_command(
    assistant: BudgetAssistant,
    context: SessionContext,
    name: str,
    params: dict[str, Any] | None = None,
) -> dict[str, Any]:
    command = get_command(name)
    parsed = parse_params(command, params)
    logger.debug("[COMMAND] %s %s", name, parsed.model_dump(exclude_none=True))
    return await command.handler(assistant, context, parsed)
