from datetime import date

import pytest

from ynab_assistant.core.errors import ValidationError
from ynab_assistant.domain.records import (
    aggregate_on_budget_balance,
    build_outbound_transaction,
    filter_approved_recent,
    group_visible_categories,
    match_payees,
    summary_view,
    transaction_view,
)
from ynab_assistant.models import (
    Account,
    BudgetSummary,
    Category,
    CategoryGroup,
    Month,
    Payee,
    Transaction,
)


def _tx(tx_id: str, tx_date: str, *, approved: bool = True, deleted: bool = False) -> Transaction:
    return Transaction(
        id=tx_id,
        date=tx_date,
        amount=-1000,
        approved=approved,
        deleted=deleted,
        account_name="Checking",
    )


def _account(balance: int, *, closed: bool = False, on_budget: bool = True) -> Account:
    return Account(id=f"acc-{balance}", name="Account", balance=balance, closed=closed, on_budget=on_budget)


def test_filter_approved_recent_orders_newest_first_and_truncates() -> None:
    transactions = [_tx("a", "2024-01-01"), _tx("b", "2024-01-03"), _tx("c", "2024-01-02")]

    result = filter_approved_recent(transactions, 2)

    assert [t.date.isoformat() for t in result] == ["2024-01-03", "2024-01-02"]


def test_filter_approved_recent_drops_unapproved_and_deleted() -> None:
    transactions = [
        _tx("old", "2020-01-01"),
        _tx("pending", "2024-05-01", approved=False),
        _tx("gone", "2024-05-02", deleted=True),
    ]

    result = filter_approved_recent(transactions, 10)

    assert [t.id for t in result] == ["old"]


def test_filter_approved_recent_keeps_input_order_on_same_date() -> None:
    transactions = [
        _tx("first", "2024-02-01"),
        _tx("newer", "2024-02-02"),
        _tx("second", "2024-02-01"),
        _tx("third", "2024-02-01"),
    ]

    result = filter_approved_recent(transactions, 10)

    assert [t.id for t in result] == ["newer", "first", "second", "third"]


def test_filter_approved_recent_empty_and_zero_limit() -> None:
    assert filter_approved_recent([], 5) == []
    assert filter_approved_recent([_tx("a", "2024-01-01")], 0) == []


def test_filter_approved_recent_rejects_negative_limit() -> None:
    with pytest.raises(ValidationError, match="invalid limit"):
        filter_approved_recent([], -1)


def test_aggregate_on_budget_balance() -> None:
    assert aggregate_on_budget_balance([]) == 0
    assert aggregate_on_budget_balance([_account(1000), _account(500, closed=True)]) == 1000
    assert aggregate_on_budget_balance(
        [_account(1000), _account(-250), _account(9000, on_budget=False)]
    ) == 750


def test_group_visible_categories() -> None:
    groups = [
        CategoryGroup(
            id="g1",
            name="Bills",
            categories=[
                Category(id="c1", name="Rent"),
                Category(id="c2", name="Old Gym", hidden=True),
                Category(id="c3", name="Removed", deleted=True),
            ],
        ),
        CategoryGroup(id="g2", name="Hidden Group", hidden=True, categories=[Category(id="c4", name="X")]),
        CategoryGroup(id="g3", name="Deleted Group", deleted=True),
        CategoryGroup(id="g4", name="Empty After Filter", categories=[Category(id="c5", name="Y", hidden=True)]),
    ]

    result = group_visible_categories(groups)

    assert [g.name for g in result] == ["Bills", "Empty After Filter"]
    assert [c.name for c in result[0].categories] == ["Rent"]
    assert result[1].categories == []
    # Input records are left untouched
    assert len(groups[0].categories) == 3


def test_build_outbound_transaction_defaults() -> None:
    request = build_outbound_transaction(
        account_id="a1",
        amount=12.5,
        payee_name="Store",
        today=date(2024, 3, 9),
    )

    assert request.model_dump() == {
        "account_id": "a1",
        "date": "2024-03-09",
        "amount": 12500,
        "payee_name": "Store",
        "category_id": None,
        "memo": None,
        "approved": True,
    }


def test_build_outbound_transaction_defaults_to_current_date() -> None:
    request = build_outbound_transaction(account_id="a1", amount="1")
    assert request.date == date.today().isoformat()


def test_build_outbound_transaction_explicit_fields() -> None:
    request = build_outbound_transaction(
        account_id="a1",
        amount="-40.255",
        date="2024-02-29",
        category_id="",
        memo="lunch",
        approved=False,
    )

    assert request.amount == -40255
    assert request.date == "2024-02-29"
    assert request.category_id is None
    assert request.memo == "lunch"
    assert request.approved is False


def test_build_outbound_transaction_approved_none_means_true() -> None:
    request = build_outbound_transaction(account_id="a1", amount=1, approved=None)
    assert request.approved is True


@pytest.mark.parametrize("account_id", [None, "", "   "])
def test_build_outbound_transaction_requires_account(account_id: str | None) -> None:
    with pytest.raises(ValidationError, match="missing account id"):
        build_outbound_transaction(account_id=account_id, amount=5)


@pytest.mark.parametrize("amount", [None, "twelve", float("nan")])
def test_build_outbound_transaction_rejects_bad_amount(amount: object) -> None:
    with pytest.raises(ValidationError, match="invalid amount"):
        build_outbound_transaction(account_id="a1", amount=amount)


def test_build_outbound_transaction_rejects_bad_date() -> None:
    with pytest.raises(ValidationError, match="invalid date"):
        build_outbound_transaction(account_id="a1", amount=5, date="03/09/2024")


def test_match_payees_substring_is_case_insensitive() -> None:
    payees = [
        Payee(id="1", name="Whole Foods"),
        Payee(id="2", name="Amazon"),
        Payee(id="3", name="whole earth bakery"),
        Payee(id="4", name="Whole Paycheck", deleted=True),
    ]

    result = match_payees(payees, "WHOLE")

    assert [p.id for p in result] == ["1", "3"]


def test_match_payees_fuzzy_fallback_only_when_enabled() -> None:
    payees = [Payee(id="1", name="Starbucks"), Payee(id="2", name="Shell")]

    assert match_payees(payees, "starbcks") == []
    result = match_payees(payees, "starbcks", fuzzy_threshold=80)
    assert [p.id for p in result] == ["1"]


def test_match_payees_requires_query() -> None:
    with pytest.raises(ValidationError, match="missing query"):
        match_payees([], "  ")


def test_transaction_view_keeps_milliunits() -> None:
    view = transaction_view(
        Transaction(
            id="t1",
            date="2024-01-05",
            amount=-45670,
            approved=True,
            cleared="cleared",
            account_name="Checking",
            payee_name="Cafe",
        )
    )

    assert view["amount"] == "-$45.67"
    assert view["amount_milliunits"] == -45670
    assert view["date"] == "2024-01-05"
    assert view["payee"] == "Cafe"


def test_summary_view_totals_on_budget_open_accounts() -> None:
    budget = BudgetSummary(id="b1", name="Home", currency_format={"iso_code": "USD"})
    accounts = [
        Account(id="a1", name="Checking", balance=150000),
        Account(id="a2", name="Savings", balance=50000, closed=True),
        Account(id="a3", name="Brokerage", balance=999000, on_budget=False),
    ]
    month = Month(month="2024-01-01", income=300000, budgeted=250000, activity=-120000, to_be_budgeted=50000)

    view = summary_view(budget, accounts, month)

    assert view["budget"]["currency"] == "USD"
    assert view["total_balance"] == "$150.00"
    assert view["total_balance_milliunits"] == 150000
    assert [a["name"] for a in view["accounts"]] == ["Checking", "Brokerage"]
    assert view["current_month"]["to_be_budgeted"] == "$50.00"
    assert "categories" not in view["current_month"]
