from unittest.mock import AsyncMock, MagicMock

import pytest

from ynab_assistant.core.errors import UnknownCommandError, ValidationError
from ynab_assistant.services.assistant import SessionContext
from ynab_assistant.services.commands import (
    COMMANDS,
    AddTransactionParams,
    TransactionsParams,
    execute_command,
    get_command,
    parse_params,
)

CONTEXT = SessionContext(budgets=(), default_budget_id="b1")


@pytest.fixture
def mock_assistant() -> MagicMock:
    assistant = MagicMock()
    for name in (
        "get_budgets",
        "get_accounts",
        "get_transactions",
        "get_categories",
        "get_summary",
        "get_month",
        "add_transaction",
        "search_payees",
    ):
        setattr(assistant, name, AsyncMock(return_value={"called": name}))
    return assistant


def test_registry_covers_every_command() -> None:
    assert set(COMMANDS) == {
        "get_budgets",
        "get_accounts",
        "get_transactions",
        "get_categories",
        "get_summary",
        "get_month",
        "add_transaction",
        "search_payees",
    }


def test_unknown_command_is_rejected() -> None:
    with pytest.raises(UnknownCommandError, match="Unknown command: delete_everything"):
        get_command("delete_everything")


def test_parse_params_accepts_camel_case() -> None:
    params = parse_params(
        get_command("get_transactions"),
        {"budgetId": "b2", "accountId": "a1", "since": "2024-01-01", "limit": 5},
    )

    assert isinstance(params, TransactionsParams)
    assert params.budget_id == "b2"
    assert params.account_id == "a1"
    assert params.since_date == "2024-01-01"
    assert params.limit == 5


def test_parse_params_reads_nested_transaction() -> None:
    params = parse_params(
        get_command("add_transaction"),
        {"transaction": {"accountId": "a1", "amount": 12.5, "payee": "Store", "categoryId": "c1"}},
    )

    assert isinstance(params, AddTransactionParams)
    assert params.transaction.account_id == "a1"
    assert params.transaction.amount == 12.5
    assert params.transaction.payee_name == "Store"
    assert params.transaction.category_id == "c1"


@pytest.mark.parametrize(
    ("name", "params"),
    [
        ("get_transactions", {"limit": -1}),
        ("get_transactions", {"limit": "many"}),
        ("search_payees", {}),
        ("add_transaction", {}),
        ("get_accounts", {"budgetID": "typo"}),
    ],
)
def test_parse_params_rejects_invalid(name: str, params: dict) -> None:
    with pytest.raises(ValidationError, match=name):
        parse_params(get_command(name), params)


@pytest.mark.anyio
async def test_execute_command_dispatches_with_typed_params(mock_assistant: MagicMock) -> None:
    result = await execute_command(
        mock_assistant,
        CONTEXT,
        "get_transactions",
        {"limit": 3, "categoryId": "c1"},
    )

    assert result == {"called": "get_transactions"}
    mock_assistant.get_transactions.assert_awaited_once_with(
        CONTEXT,
        None,
        limit=3,
        account_id=None,
        category_id="c1",
        since_date=None,
    )


@pytest.mark.anyio
async def test_execute_command_month_defaults_to_current(mock_assistant: MagicMock) -> None:
    await execute_command(mock_assistant, CONTEXT, "get_month")

    mock_assistant.get_month.assert_awaited_once_with(CONTEXT, None, "current")


@pytest.mark.anyio
async def test_execute_command_add_transaction(mock_assistant: MagicMock) -> None:
    await execute_command(
        mock_assistant,
        CONTEXT,
        "add_transaction",
        {"budgetId": "b2", "transaction": {"accountId": "a1", "amount": "9.99", "approved": False}},
    )

    mock_assistant.add_transaction.assert_awaited_once_with(
        CONTEXT,
        "b2",
        account_id="a1",
        amount="9.99",
        payee_name=None,
        date=None,
        category_id=None,
        memo=None,
        approved=False,
    )


@pytest.mark.anyio
async def test_execute_command_search_payees(mock_assistant: MagicMock) -> None:
    await execute_command(mock_assistant, CONTEXT, "search_payees", {"query": "shell"})

    mock_assistant.search_payees.assert_awaited_once_with(CONTEXT, "shell", None)


@pytest.mark.anyio
async def test_execute_command_unknown_runs_nothing(mock_assistant: MagicMock) -> None:
    with pytest.raises(UnknownCommandError):
        await execute_command(mock_assistant, CONTEXT, "get_everything", {})

    for command in COMMANDS:
        getattr(mock_assistant, command).assert_not_awaited()


@pytest.mark.anyio
@pytest.mark.parametrize("amount", [True, False, [1]])
async def test_execute_command_rejects_non_numeric_amount(
    mock_assistant: MagicMock,
    amount: object,
) -> None:
    params = {"transaction": {"accountId": "a1", "amount": amount}}

    with pytest.raises(ValidationError, match="add_transaction: transaction.amount"):
        await execute_command(mock_assistant, CONTEXT, "add_transaction", params)
    mock_assistant.add_transaction.assert_not_awaited()
