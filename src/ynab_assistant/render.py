"""Plain-text rendering of the assistant's JSON-ready results."""

import json
from typing import Any

RULE = "─" * 50


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def render_budgets(result: dict[str, Any]) -> str:
    budgets = result["budgets"]
    if not budgets:
        return "No budgets found."
    lines = [f"Found {len(budgets)} budget(s):", ""]
    for index, budget in enumerate(budgets, start=1):
        marker = " (default)" if budget["id"] == result.get("default") else ""
        lines.append(f"{index}. {budget['name']}{marker}")
        lines.append(f"   ID: {budget['id']}")
        lines.append(f"   Currency: {budget['currency'] or 'unknown'}")
        lines.append(f"   Last Modified: {budget['last_modified'] or 'unknown'}")
        lines.append("")
    return "\n".join(lines).rstrip()


def render_accounts(result: dict[str, Any]) -> str:
    accounts = result["accounts"]
    if not accounts:
        return "No accounts found."
    lines = [f"Found {len(accounts)} account(s):", ""]
    for index, account in enumerate(accounts, start=1):
        lines.append(f"{index}. {account['name']}")
        lines.append(f"   ID: {account['id']}")
        lines.append(f"   Type: {account['type']}")
        lines.append(f"   Balance: {account['balance']}")
        lines.append(f"   On Budget: {_yes_no(account['on_budget'])}")
        lines.append(f"   Closed: {_yes_no(account['closed'])}")
        lines.append("")
    return "\n".join(lines).rstrip()


def render_transactions(result: dict[str, Any]) -> str:
    transactions = result["transactions"]
    if not transactions:
        return "No transactions found."
    lines = [f"Showing {len(transactions)} most recent transactions:", ""]
    for index, tx in enumerate(transactions, start=1):
        indicator = "+" if tx["amount_milliunits"] >= 0 else ""
        payee = tx["payee"] or "Unknown"
        lines.append(f"{index}. {tx['date']} | {indicator}{tx['amount']} | {payee}")
        lines.append(f"   Account: {tx['account']}")
        if tx["category"]:
            lines.append(f"   Category: {tx['category']}")
        if tx["memo"]:
            lines.append(f"   Memo: {tx['memo']}")
        lines.append("")
    return "\n".join(lines).rstrip()


def _render_category_lines(categories: list[dict[str, Any]]) -> list[str]:
    lines = []
    for category in categories:
        lines.append(f"  {category['name']}")
        lines.append(
            f"    Budgeted: {category['budgeted']} | "
            f"Activity: {category['activity']} | "
            f"Balance: {category['balance']}"
        )
    return lines


def render_categories(result: dict[str, Any]) -> str:
    groups = result["category_groups"]
    if not groups:
        return "No categories found."
    lines: list[str] = []
    for group in groups:
        lines.append(group["group_name"])
        lines.append(RULE)
        lines.extend(_render_category_lines(group["categories"]))
        lines.append("")
    return "\n".join(lines).rstrip()


def render_month(result: dict[str, Any]) -> str:
    lines = [
        f"Month: {result['month']}",
        RULE,
        f"Income: {result['income']}",
        f"Budgeted: {result['budgeted']}",
        f"Activity: {result['activity']}",
        f"To Be Budgeted: {result['to_be_budgeted']}",
    ]
    if result.get("age_of_money") is not None:
        lines.append(f"Age of Money: {result['age_of_money']} days")
    if result["categories"]:
        lines.append("")
        lines.append("Categories:")
        lines.extend(_render_category_lines(result["categories"]))
    return "\n".join(lines)


def render_summary(result: dict[str, Any]) -> str:
    budget = result["budget"]
    month = result["current_month"]
    lines = [
        f"Budget: {budget['name']}",
        f"Currency: {budget['currency'] or 'unknown'}",
        "",
        "Current Month Summary:",
        RULE,
        f"Income: {month['income']}",
        f"Budgeted: {month['budgeted']}",
        f"Activity: {month['activity']}",
        f"To Be Budgeted: {month['to_be_budgeted']}",
        "",
        "Account Balances:",
        RULE,
    ]
    for account in result["accounts"]:
        lines.append(f"{account['name']}: {account['balance']}")
    lines.append("")
    lines.append(f"Total (On Budget): {result['total_balance']}")
    return "\n".join(lines)


def render_created_transaction(result: dict[str, Any]) -> str:
    tx = result["transaction"]
    return "\n".join(
        [
            "Transaction created successfully!",
            f"  ID: {tx['id']}",
            f"  Date: {tx['date']}",
            f"  Amount: {tx['amount']}",
            f"  Payee: {tx['payee'] or 'Unknown'}",
        ]
    )


def render_payees(result: dict[str, Any]) -> str:
    payees = result["payees"]
    if not payees:
        return "No matching payees."
    lines = [f"Found {len(payees)} payee(s):"]
    for payee in payees:
        transfer = " (transfer)" if payee["transfer_account_id"] else ""
        lines.append(f"  {payee['name']}{transfer}  [{payee['id']}]")
    return "\n".join(lines)


def render_verification(result: dict[str, Any]) -> str:
    lines = [
        "Successfully connected to YNAB API!",
        f"  User ID: {result['user_id']}",
    ]
    budgets = result["budgets"]
    if not budgets:
        lines.append("  No budgets found.")
    else:
        lines.append(f"  Found {len(budgets)} budget(s):")
        for index, budget in enumerate(budgets, start=1):
            lines.append(f"  {index}. {budget['name']} ({budget['currency'] or 'unknown'})")
    return "\n".join(lines)


def render_configuration(rows: list[dict[str, str]], config_path: str) -> str:
    lines = [f"Config file: {config_path}", ""]
    category = None
    for row in rows:
        if row["category"] != category:
            category = row["category"]
            if len(lines) > 2:
                lines.append("")
            lines.append(category)
            lines.append(RULE)
        lines.append(f"  {row['key']} = {row['value']}  ({row['source']})")
    return "\n".join(lines)
