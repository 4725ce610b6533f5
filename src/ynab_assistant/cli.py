import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn, TypeVar

import click

from ynab_assistant import render
from ynab_assistant.core import configuration, settings
from ynab_assistant.core.errors import (
    ConfigurationError,
    RemoteError,
    ValidationError,
    YnabAssistantError,
    missing_token_error,
)
from ynab_assistant.integration.ynab import YnabClient
from ynab_assistant.logger import get_logger, setup_logging
from ynab_assistant.services.assistant import BudgetAssistant, SessionContext, initialize
from ynab_assistant.services.commands import COMMANDS, execute_command, get_command, parse_params

logger = get_logger(__name__)

T = TypeVar("T")

EXIT_PROMPTS = {"quit", "exit", "q"}


def _fail(exc: YnabAssistantError) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    if isinstance(exc, ConfigurationError) and exc.remediation:
        click.echo(exc.remediation, err=True)
    sys.exit(1)


def _run(work: Callable[[BudgetAssistant], Awaitable[T]]) -> T:
    """Run one async unit of work against a fresh client, closing it afterwards."""
    token = settings.get_access_token()
    if not token:
        _fail(missing_token_error())

    async def runner() -> T:
        client = YnabClient(token=token)
        try:
            return await work(BudgetAssistant(client))
        finally:
            await client.aclose()

    try:
        return asyncio.run(runner())
    except YnabAssistantError as exc:
        _fail(exc)


def _run_with_context(
    budget_id: str | None,
    work: Callable[[BudgetAssistant, SessionContext], Awaitable[T]],
) -> T:
    async def with_context(assistant: BudgetAssistant) -> T:
        context = await initialize(assistant.client, preferred_budget_id=budget_id)
        return await work(assistant, context)

    return _run(with_context)


def _emit(result: Any, renderer: Callable[[Any], str], as_json: bool) -> None:
    click.echo(render.to_json(result) if as_json else renderer(result))


def _parse_params(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"invalid parameters JSON: {exc.msg}") from exc
    if not isinstance(params, dict):
        raise ValidationError("parameters must be a JSON object")
    return params


json_option = click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text.")
budget_argument = click.argument("budget_id", required=False)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Work with your YNAB budgets from the command line."""
    setup_logging("DEBUG" if verbose else None)
    settings.log_environment()


@cli.command()
@json_option
def budgets(as_json: bool) -> None:
    """List all budgets."""
    result = _run_with_context(None, lambda a, ctx: a.get_budgets(ctx))
    _emit(result, render.render_budgets, as_json)


@cli.command()
@budget_argument
@json_option
def accounts(budget_id: str | None, as_json: bool) -> None:
    """List all accounts in a budget."""
    result = _run_with_context(budget_id, lambda a, ctx: a.get_accounts(ctx))
    _emit(result, render.render_accounts, as_json)


@cli.command()
@budget_argument
@click.option("--limit", "-n", type=click.IntRange(min=0), default=None, help="Number of transactions.")
@click.option("--account", "account_id", default=None, help="Only this account.")
@click.option("--category", "category_id", default=None, help="Only this category.")
@click.option("--since", "since_date", default=None, help="Only on or after this date (YYYY-MM-DD).")
@json_option
def transactions(
    budget_id: str | None,
    limit: int | None,
    account_id: str | None,
    category_id: str | None,
    since_date: str | None,
    as_json: bool,
) -> None:
    """List recent approved transactions, newest first."""
    result = _run_with_context(
        budget_id,
        lambda a, ctx: a.get_transactions(
            ctx,
            limit=limit,
            account_id=account_id,
            category_id=category_id,
            since_date=since_date,
        ),
    )
    _emit(result, render.render_transactions, as_json)


@cli.command()
@budget_argument
@json_option
def categories(budget_id: str | None, as_json: bool) -> None:
    """List visible categories by group."""
    result = _run_with_context(budget_id, lambda a, ctx: a.get_categories(ctx))
    _emit(result, render.render_categories, as_json)


@cli.command()
@budget_argument
@json_option
def summary(budget_id: str | None, as_json: bool) -> None:
    """Show the current month and account balances."""
    result = _run_with_context(budget_id, lambda a, ctx: a.get_summary(ctx))
    _emit(result, render.render_summary, as_json)


@cli.command()
@budget_argument
@click.option("--month", "-m", default="current", show_default=True, help="current, YYYY-MM or YYYY-MM-DD.")
@json_option
def month(budget_id: str | None, month: str, as_json: bool) -> None:
    """Show one budget month."""
    result = _run_with_context(budget_id, lambda a, ctx: a.get_month(ctx, month=month))
    _emit(result, render.render_month, as_json)


@cli.command()
@click.argument("query")
@budget_argument
@click.option("--fuzzy", type=click.FloatRange(0, 100), default=None, help="Fuzzy fallback threshold (0-100).")
@json_option
def payees(query: str, budget_id: str | None, fuzzy: float | None, as_json: bool) -> None:
    """Search payees by name."""
    result = _run_with_context(
        budget_id,
        lambda a, ctx: a.search_payees(ctx, query, fuzzy_threshold=fuzzy),
    )
    _emit(result, render.render_payees, as_json)


@cli.command("add-transaction")
@budget_argument
@click.option("--account", "account_id", required=True, help="Account id.")
@click.option("--amount", required=True, help="Amount in currency units; negative for outflows.")
@click.option("--payee", "payee_name", default=None, help="Payee name.")
@click.option("--category", "category_id", default=None, help="Category id.")
@click.option("--memo", default=None, help="Memo.")
@click.option("--date", "date_value", default=None, help="Date (YYYY-MM-DD), defaults to today.")
@click.option("--unapproved", is_flag=True, help="Leave the transaction unapproved.")
@json_option
def add_transaction(
    budget_id: str | None,
    account_id: str,
    amount: str,
    payee_name: str | None,
    category_id: str | None,
    memo: str | None,
    date_value: str | None,
    unapproved: bool,
    as_json: bool,
) -> None:
    """Add a new transaction."""
    result = _run_with_context(
        budget_id,
        lambda a, ctx: a.add_transaction(
            ctx,
            account_id=account_id,
            amount=amount,
            payee_name=payee_name,
            date=date_value,
            category_id=category_id,
            memo=memo,
            approved=not unapproved,
        ),
    )
    _emit(result, render.render_created_transaction, as_json)


@cli.command()
@click.argument("command")
@click.argument("params", required=False)
def call(command: str, params: str | None) -> None:
    """Run one named command with JSON parameters and print JSON.

    Example: call get_transactions '{"limit": 5}'
    """
    try:
        parsed = _parse_params(params)
        validated = parse_params(get_command(command), parsed)
    except ValidationError as exc:
        _fail(exc)
    result = _run_with_context(
        getattr(validated, "budget_id", None),
        lambda a, ctx: execute_command(a, ctx, command, parsed),
    )
    click.echo(render.to_json(result))


def _command_help() -> str:
    lines = ["Commands:"]
    for name, command in COMMANDS.items():
        lines.append(f"  {name:<18} {command.description}")
    lines.append("Usage: <command> [JSON parameters], e.g. get_transactions {\"limit\": 5}")
    lines.append("Type 'quit' to leave.")
    return "\n".join(lines)


async def _interactive_loop(assistant: BudgetAssistant, context: SessionContext) -> None:
    budgets_result = await assistant.get_budgets(context)
    click.echo(render.render_budgets(budgets_result))
    if context.default_budget_id:
        click.echo("")
        click.echo(render.render_summary(await assistant.get_summary(context)))
    click.echo("")
    click.echo(_command_help())

    while True:
        try:
            line = await asyncio.to_thread(
                click.prompt, "ynab", default="", show_default=False, prompt_suffix="> "
            )
        except (click.Abort, EOFError):
            click.echo("")
            return
        line = line.strip()
        if not line:
            continue
        if line.lower() in EXIT_PROMPTS:
            return
        if line.lower() == "help":
            click.echo(_command_help())
            continue

        name, _, raw_params = line.partition(" ")
        try:
            result = await execute_command(assistant, context, name, _parse_params(raw_params.strip()))
        except (ValidationError, RemoteError) as exc:
            click.echo(f"Error: {exc}", err=True)
            continue
        click.echo(render.to_json(result))


@cli.command()
def interactive() -> None:
    """Start a session that dispatches named commands."""
    click.echo("YNAB Interactive Mode")
    click.echo("")
    _run_with_context(None, _interactive_loop)


@cli.command()
@json_option
def verify(as_json: bool) -> None:
    """Check the access token and list the budgets it can see."""
    result = _run(lambda a: a.verify_connection())
    _emit(result, render.render_verification, as_json)


@cli.group()
def config() -> None:
    """Inspect or edit the configuration file."""


@config.command("show")
def config_show() -> None:
    """Show effective settings (secrets masked)."""
    rows = configuration.describe_configuration()
    click.echo(render.render_configuration(rows, configuration.get_config_path()))


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def config_init(force: bool) -> None:
    """Write a commented configuration template."""
    path, written = configuration.write_config_template(overwrite=force)
    if written:
        click.echo(f"Wrote {path}")
    else:
        click.echo(f"{path} already exists (use --force to overwrite).")


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Store one setting in the configuration file."""
    try:
        stored = configuration.set_config_value(key.upper(), value)
    except ValidationError as exc:
        _fail(exc)
    shown = settings.mask_env_value(key.upper(), stored) if stored else "<unset>"
    click.echo(f"{key.upper()} = {shown}")
