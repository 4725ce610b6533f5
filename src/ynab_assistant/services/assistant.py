import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Any

from ynab_assistant.core import settings
from ynab_assistant.core.errors import ValidationError
from ynab_assistant.domain.currency import AmountInput, format_currency
from ynab_assistant.domain.records import (
    account_view,
    budget_view,
    build_outbound_transaction,
    category_group_view,
    filter_approved_recent,
    group_visible_categories,
    match_payees,
    month_view,
    payee_view,
    summary_view,
    transaction_view,
)
from ynab_assistant.domain.timefmt import parse_iso_date
from ynab_assistant.integration.ynab import YnabClient
from ynab_assistant.logger import get_logger
from ynab_assistant.models import BudgetSummary, CurrencyFormat

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Budget list and default budget, built once per session and passed around."""
    budgets: tuple[BudgetSummary, ...] = ()
    default_budget_id: str | None = None

    def resolve_budget_id(self, budget_id: str | None = None) -> str:
        resolved = budget_id or self.default_budget_id
        if not resolved:
            raise ValidationError("missing budget id")
        return resolved

    def currency_format(self, budget_id: str) -> CurrencyFormat | None:
        for budget in self.budgets:
            if budget.id == budget_id:
                return budget.currency_format
        return None


async def initialize(
    client: YnabClient,
    preferred_budget_id: str | None = None,
) -> SessionContext:
    budgets = tuple(await client.get_budgets())
    preferred = preferred_budget_id or settings.get_default_budget_id()
    if preferred:
        default_id: str | None = preferred
    elif budgets:
        default_id = budgets[0].id
    else:
        default_id = None
    logger.info(
        "[SESSION] Loaded %d budget(s); default budget: %s.",
        len(budgets),
        default_id or "<none>",
    )
    return SessionContext(budgets=budgets, default_budget_id=default_id)


class BudgetAssistant:
    def __init__(self, client: YnabClient) -> None:
        self.client = client

    async def get_budgets(self, context: SessionContext) -> dict[str, Any]:
        return {
            "budgets": [budget_view(b) for b in context.budgets],
            "default": context.default_budget_id,
        }

    async def get_accounts(
        self,
        context: SessionContext,
        budget_id: str | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        accounts = await self.client.get_accounts(resolved)
        fmt = context.currency_format(resolved)
        return {"accounts": [account_view(a, fmt) for a in accounts]}

    async def get_transactions(
        self,
        context: SessionContext,
        budget_id: str | None = None,
        *,
        limit: int | None = None,
        account_id: str | None = None,
        category_id: str | None = None,
        since_date: str | date | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        if limit is None:
            limit = settings.get_transactions_limit()
        if limit < 0:
            raise ValidationError("invalid limit")
        since_value = parse_iso_date(since_date, field="since date").isoformat() if since_date else None

        transactions = await self.client.get_transactions(
            resolved,
            since_date=since_value,
            account_id=account_id,
            category_id=category_id,
        )
        recent = filter_approved_recent(transactions, limit)
        logger.debug(
            "[TRANSACTIONS] %d of %d transactions kept for budget %s.",
            len(recent),
            len(transactions),
            resolved,
        )
        fmt = context.currency_format(resolved)
        return {
            "transactions": [transaction_view(t, fmt) for t in recent],
            "count": len(recent),
        }

    async def get_categories(
        self,
        context: SessionContext,
        budget_id: str | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        groups = group_visible_categories(await self.client.get_category_groups(resolved))
        fmt = context.currency_format(resolved)
        return {"category_groups": [category_group_view(g, fmt) for g in groups]}

    async def get_summary(
        self,
        context: SessionContext,
        budget_id: str | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        # Independent requests; the first failure aborts the summary
        budget, accounts, month = await asyncio.gather(
            self.client.get_budget(resolved),
            self.client.get_accounts(resolved),
            self.client.get_month(resolved),
        )
        return summary_view(budget, accounts, month)

    async def get_month(
        self,
        context: SessionContext,
        budget_id: str | None = None,
        month: str | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        month_data = await self.client.get_month(resolved, month)
        return month_view(month_data, context.currency_format(resolved))

    async def add_transaction(
        self,
        context: SessionContext,
        budget_id: str | None = None,
        *,
        account_id: str | None,
        amount: AmountInput | None,
        payee_name: str | None = None,
        date: str | None = None,
        category_id: str | None = None,
        memo: str | None = None,
        approved: bool | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        request = build_outbound_transaction(
            account_id=account_id,
            amount=amount,
            payee_name=payee_name,
            date=date,
            category_id=category_id,
            memo=memo,
            approved=approved,
        )
        created = await self.client.create_transaction(resolved, request)
        return {
            "success": True,
            "transaction": {
                "id": created.id,
                "date": created.date.isoformat(),
                "amount": format_currency(created.amount, context.currency_format(resolved)),
                "amount_milliunits": created.amount,
                "payee": created.payee_name,
            },
        }

    async def search_payees(
        self,
        context: SessionContext,
        query: str,
        budget_id: str | None = None,
        *,
        fuzzy_threshold: float | None = None,
    ) -> dict[str, Any]:
        resolved = context.resolve_budget_id(budget_id)
        if not query or not query.strip():
            raise ValidationError("missing query")
        if fuzzy_threshold is None:
            fuzzy_threshold = settings.get_payee_fuzzy_threshold()
        payees = await self.client.get_payees(resolved)
        matches = match_payees(payees, query, fuzzy_threshold=fuzzy_threshold)
        return {"payees": [payee_view(p) for p in matches]}

    async def verify_connection(self) -> dict[str, Any]:
        user = await self.client.get_user()
        budgets = await self.client.get_budgets(use_cache=False)
        return {
            "user_id": user.id,
            "budgets": [budget_view(b) for b in budgets],
        }
