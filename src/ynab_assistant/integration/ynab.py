import asyncio
from time import monotonic
from typing import Any

import httpx

from ynab_assistant.core import settings
from ynab_assistant.core.errors import RemoteError, missing_token_error
from ynab_assistant.domain.timefmt import format_duration, normalize_month
from ynab_assistant.logger import get_logger
from ynab_assistant.models import (
    Account,
    BudgetSummary,
    CategoryGroup,
    Month,
    Payee,
    Transaction,
    TransactionRequest,
    User,
)

logger = get_logger(__name__)


def _remote_error_from_response(response: httpx.Response) -> RemoteError:
    """Build a RemoteError from YNAB's ``{"error": {"id", "name", "detail"}}`` body."""
    name = f"http_{response.status_code}"
    detail = response.reason_phrase or "Request failed"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        name = str(error.get("name") or name)
        detail = str(error.get("detail") or detail)
    return RemoteError(name, detail, status_code=response.status_code)


class YnabClient:
    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        budgets_cache_ttl: float | None = None,
        timeout: float | None = None,
    ):
        self.token = token or settings.get_access_token()
        self.base_url = (base_url or settings.get_api_url()).rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.timeout = timeout if timeout is not None else settings.get_timeout()
        self._client = client
        self._client_lock = asyncio.Lock()
        self._cache_lock = asyncio.Lock()
        self._budgets_cache: list[BudgetSummary] | None = None
        self._budgets_cache_expires_at = 0.0
        cache_ttl = budgets_cache_ttl
        if cache_ttl is None:
            cache_ttl = settings.get_budgets_ttl()
        self._budgets_cache_ttl = max(0.0, cache_ttl)

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            # Another task may have created the client while we waited
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.token:
            raise missing_token_error()

        client = await self._get_client()
        started = monotonic()
        try:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                headers=self.headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            error = _remote_error_from_response(exc.response)
            logger.error("[YNAB] %s %s failed: %s", method, path, error)
            raise error from exc
        except httpx.HTTPError as exc:
            logger.error("[YNAB] %s %s failed: %s", method, path, exc)
            raise RemoteError("connection_error", str(exc) or exc.__class__.__name__) from exc

        logger.debug(
            "[YNAB] %s %s -> %s in %s",
            method,
            path,
            response.status_code,
            format_duration(monotonic() - started),
        )
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("[YNAB] %s %s returned a non-JSON body.", method, path)
            raise RemoteError(
                "invalid_response",
                "Response body is not valid JSON",
                status_code=response.status_code,
            ) from exc
        return data.get("data", {}) if isinstance(data, dict) else {}

    def _get_cached_budgets(self) -> list[BudgetSummary] | None:
        """Safe to call without the lock for a fast-path check."""
        if self._budgets_cache is None or self._budgets_cache_ttl <= 0:
            return None
        if monotonic() >= self._budgets_cache_expires_at:
            return None
        return self._budgets_cache

    def _cache_budgets(self, budgets: list[BudgetSummary]) -> None:
        """Must be called while holding _cache_lock."""
        if self._budgets_cache_ttl <= 0:
            return
        self._budgets_cache = budgets
        self._budgets_cache_expires_at = monotonic() + self._budgets_cache_ttl

    async def get_user(self) -> User:
        data = await self._request("GET", "/user")
        return User.model_validate(data["user"])

    async def _fetch_budgets(self) -> list[BudgetSummary]:
        data = await self._request("GET", "/budgets")
        return [BudgetSummary.model_validate(b) for b in data.get("budgets", [])]

    async def get_budgets(self, *, use_cache: bool = True) -> list[BudgetSummary]:
        if not use_cache:
            return await self._fetch_budgets()

        async with self._cache_lock:
            cached = self._get_cached_budgets()
            if cached is not None:
                logger.debug("[YNAB] Using cached budget list (%d budgets).", len(cached))
                return cached
            budgets = await self._fetch_budgets()
            self._cache_budgets(budgets)
            return budgets

    async def get_budget(self, budget_id: str) -> BudgetSummary:
        data = await self._request("GET", f"/budgets/{budget_id}")
        return BudgetSummary.model_validate(data["budget"])

    async def get_accounts(self, budget_id: str) -> list[Account]:
        data = await self._request("GET", f"/budgets/{budget_id}/accounts")
        return [Account.model_validate(a) for a in data.get("accounts", [])]

    async def get_transactions(
        self,
        budget_id: str,
        *,
        since_date: str | None = None,
        account_id: str | None = None,
        category_id: str | None = None,
    ) -> list[Transaction]:
        """List transactions, scoped to one account or category when given.

        ``account_id`` wins over ``category_id`` when both are set.
        """
        if account_id:
            path = f"/budgets/{budget_id}/accounts/{account_id}/transactions"
        elif category_id:
            path = f"/budgets/{budget_id}/categories/{category_id}/transactions"
        else:
            path = f"/budgets/{budget_id}/transactions"
        params = {"since_date": since_date} if since_date else None
        data = await self._request("GET", path, params=params)
        return [Transaction.model_validate(t) for t in data.get("transactions", [])]

    async def get_category_groups(self, budget_id: str) -> list[CategoryGroup]:
        data = await self._request("GET", f"/budgets/{budget_id}/categories")
        return [CategoryGroup.model_validate(g) for g in data.get("category_groups", [])]

    async def get_month(self, budget_id: str, month: str | None = None) -> Month:
        month_key = normalize_month(month)
        data = await self._request("GET", f"/budgets/{budget_id}/months/{month_key}")
        return Month.model_validate(data["month"])

    async def create_transaction(
        self,
        budget_id: str,
        transaction: TransactionRequest,
    ) -> Transaction:
        payload = {"transaction": transaction.model_dump()}
        data = await self._request("POST", f"/budgets/{budget_id}/transactions", json=payload)
        created = Transaction.model_validate(data["transaction"])
        logger.info("[YNAB] Created transaction %s in budget %s.", created.id, budget_id)
        return created

    async def get_payees(self, budget_id: str) -> list[Payee]:
        data = await self._request("GET", f"/budgets/{budget_id}/payees")
        return [Payee.model_validate(p) for p in data.get("payees", [])]
