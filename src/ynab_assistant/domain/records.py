"""Pure record filtering and shaping.

Functions here take parsed API models and return filtered models, outbound
requests or JSON-ready dicts. None of them touch the network.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

from rapidfuzz import fuzz, process

from ynab_assistant.core.errors import ValidationError
from ynab_assistant.domain.currency import AmountInput, format_currency, to_milliunits
from ynab_assistant.domain.timefmt import parse_iso_date, today_iso
from ynab_assistant.models import (
    Account,
    BudgetSummary,
    Category,
    CategoryGroup,
    CurrencyFormat,
    Month,
    Payee,
    Transaction,
    TransactionRequest,
)


def is_visible_transaction(transaction: Transaction) -> bool:
    return transaction.approved and not transaction.deleted


def filter_approved_recent(transactions: Iterable[Transaction], limit: int) -> list[Transaction]:
    """Approved, non-deleted transactions, newest first, at most ``limit``.

    Transactions on the same date keep their input order.
    """
    if limit < 0:
        raise ValidationError("invalid limit")
    visible = [t for t in transactions if is_visible_transaction(t)]
    # sorted() is stable with reverse=True as well
    visible = sorted(visible, key=lambda t: t.date, reverse=True)
    return visible[:limit]


def aggregate_on_budget_balance(accounts: Iterable[Account]) -> int:
    return sum(a.balance for a in accounts if not a.closed and a.on_budget)


def group_visible_categories(category_groups: Iterable[CategoryGroup]) -> list[CategoryGroup]:
    """Drop hidden/deleted groups and categories. Groups left empty are kept."""
    visible_groups: list[CategoryGroup] = []
    for group in category_groups:
        if group.hidden or group.deleted:
            continue
        categories = [c for c in group.categories if not c.hidden and not c.deleted]
        visible_groups.append(group.model_copy(update={"categories": categories}))
    return visible_groups


def build_outbound_transaction(
    *,
    account_id: str | None,
    amount: AmountInput | None,
    payee_name: str | None = None,
    date: str | date | None = None,
    category_id: str | None = None,
    memo: str | None = None,
    approved: bool | None = None,
    today: date | None = None,
) -> TransactionRequest:
    if not account_id or not str(account_id).strip():
        raise ValidationError("missing account id")
    if amount is None:
        raise ValidationError("invalid amount")
    milliunits = to_milliunits(amount)

    if date:
        date_value = parse_iso_date(date).isoformat()
    else:
        date_value = today_iso(today)

    return TransactionRequest(
        account_id=str(account_id).strip(),
        date=date_value,
        amount=milliunits,
        payee_name=payee_name or None,
        category_id=category_id or None,
        memo=memo or None,
        approved=approved is not False,
    )


def match_payees(
    payees: Iterable[Payee],
    query: str,
    *,
    fuzzy_threshold: float = 0.0,
) -> list[Payee]:
    """Case-insensitive substring search; fuzzy fallback when nothing matches."""
    needle = (query or "").strip().lower()
    if not needle:
        raise ValidationError("missing query")

    candidates = [p for p in payees if not p.deleted]
    matches = [p for p in candidates if needle in p.name.lower()]
    if matches or fuzzy_threshold <= 0:
        return matches

    names = {index: payee.name for index, payee in enumerate(candidates)}
    scored = process.extract(
        needle,
        names,
        scorer=fuzz.partial_ratio,
        processor=str.lower,
        score_cutoff=fuzzy_threshold,
        limit=None,
    )
    return [candidates[index] for _, _, index in scored]


def budget_view(budget: BudgetSummary) -> dict[str, Any]:
    currency = budget.currency_format.iso_code if budget.currency_format else None
    return {
        "id": budget.id,
        "name": budget.name,
        "currency": currency,
        "last_modified": budget.last_modified_on,
    }


def account_view(account: Account, currency_format: CurrencyFormat | None = None) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "type": account.type,
        "balance": format_currency(account.balance, currency_format),
        "balance_milliunits": account.balance,
        "on_budget": account.on_budget,
        "closed": account.closed,
    }


def transaction_view(
    transaction: Transaction,
    currency_format: CurrencyFormat | None = None,
) -> dict[str, Any]:
    return {
        "id": transaction.id,
        "date": transaction.date.isoformat(),
        "amount": format_currency(transaction.amount, currency_format),
        "amount_milliunits": transaction.amount,
        "payee": transaction.payee_name,
        "category": transaction.category_name,
        "account": transaction.account_name,
        "memo": transaction.memo,
        "cleared": transaction.cleared,
        "approved": transaction.approved,
    }


def _category_view(category: Category, currency_format: CurrencyFormat | None) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "budgeted": format_currency(category.budgeted, currency_format),
        "activity": format_currency(category.activity, currency_format),
        "balance": format_currency(category.balance, currency_format),
        "budgeted_milliunits": category.budgeted,
        "activity_milliunits": category.activity,
        "balance_milliunits": category.balance,
    }


def category_group_view(
    group: CategoryGroup,
    currency_format: CurrencyFormat | None = None,
) -> dict[str, Any]:
    return {
        "group_id": group.id,
        "group_name": group.name,
        "categories": [_category_view(c, currency_format) for c in group.categories],
    }


def month_view(month: Month, currency_format: CurrencyFormat | None = None) -> dict[str, Any]:
    return {
        "month": month.month.isoformat(),
        "income": format_currency(month.income, currency_format),
        "budgeted": format_currency(month.budgeted, currency_format),
        "activity": format_currency(month.activity, currency_format),
        "to_be_budgeted": format_currency(month.to_be_budgeted, currency_format),
        "income_milliunits": month.income,
        "budgeted_milliunits": month.budgeted,
        "activity_milliunits": month.activity,
        "to_be_budgeted_milliunits": month.to_be_budgeted,
        "age_of_money": month.age_of_money,
        "categories": [
            _category_view(c, currency_format)
            for c in month.categories
            if not c.hidden and not c.deleted
        ],
    }


def summary_view(
    budget: BudgetSummary,
    accounts: Sequence[Account],
    month: Month,
) -> dict[str, Any]:
    currency_format = budget.currency_format
    total_balance = aggregate_on_budget_balance(accounts)
    current = month_view(month, currency_format)
    current.pop("categories")
    return {
        "budget": budget_view(budget),
        "current_month": current,
        "accounts": [
            {
                "name": a.name,
                "balance": format_currency(a.balance, currency_format),
                "balance_milliunits": a.balance,
                "on_budget": a.on_budget,
            }
            for a in accounts
            if not a.closed
        ],
        "total_balance": format_currency(total_balance, currency_format),
        "total_balance_milliunits": total_balance,
    }


def payee_view(payee: Payee) -> dict[str, Any]:
    return {
        "id": payee.id,
        "name": payee.name,
        "transfer_account_id": payee.transfer_account_id,
    }
