"""Lemon Squeezy billing collector.

Builds the daily revenue ledger from orders and subscription invoices,
plus the MRR and active-subscription snapshot.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any

from saas_dashboard.collectors.base import BaseCollector, CollectorError
from saas_dashboard.metrics.ranges import iter_days
from saas_dashboard.metrics.records import BillingMetrics

logger = logging.getLogger(__name__)


def created_on(record: dict[str, Any]) -> date:
    """UTC calendar day of a record's ``created_at``."""
    raw = record["attributes"]["created_at"]
    created_at = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc)
    return created_at.date()


def is_initial_invoice(attributes: dict[str, Any]) -> bool:
    """Initial invoices are already counted through their order."""
    return attributes.get("billing_reason") == "initial" or bool(attributes.get("order_id"))


def build_ledger(
    start_date: date,
    end_date: date,
    orders: list[dict],
    invoices: list[dict],
    customers: list[dict],
    active_subscriptions: list[dict],
) -> list[BillingMetrics]:
    """Reconcile raw Lemon Squeezy records into one BillingMetrics per day."""
    # Amounts stay in cents until the end
    daily = {
        day: {"revenue": 0, "renewal_revenue": 0, "purchases": 0}
        for day in iter_days(start_date, end_date)
    }

    for order in orders:
        attrs = order.get("attributes", {})
        if attrs.get("status") != "paid":
            continue
        totals = daily.get(created_on(order))
        if totals is None:
            continue
        totals["revenue"] += int(attrs.get("total") or 0)
        totals["purchases"] += 1

    for invoice in invoices:
        attrs = invoice.get("attributes", {})
        if attrs.get("status") != "paid" or is_initial_invoice(attrs):
            continue
        totals = daily.get(created_on(invoice))
        if totals is None:
            continue
        amount = int(attrs.get("total") or 0)
        totals["revenue"] += amount
        totals["renewal_revenue"] += amount

    active_customer_ids = {
        str(sub.get("attributes", {}).get("customer_id")) for sub in active_subscriptions
    }
    mrr_cents = sum(
        int(customer.get("attributes", {}).get("mrr") or 0)
        for customer in customers
        if str(customer.get("id")) in active_customer_ids
    )
    # Subscriptions, not distinct customers: two subs on one customer count twice
    active_count = len(active_subscriptions)

    return [
        BillingMetrics(
            date=day,
            mrr=mrr_cents / 100,
            revenue=totals["revenue"] / 100,
            renewal_revenue=totals["renewal_revenue"] / 100,
            churn_rate=0.0,
            active_customers=active_count,
            purchases=totals["purchases"],
        )
        for day, totals in daily.items()
    ]


class LemonSqueezyCollector(BaseCollector):
    """Collect the billing ledger from the Lemon Squeezy API."""

    name = "lemonsqueezy"
    page_size = 100
    max_pages = 1000

    API_BASE = "https://api.lemonsqueezy.com/v1"

    async def collect(self, start_date: date, end_date: date) -> list[BillingMetrics]:
        """Build the ledger for [start_date, end_date].

        Returns an empty list when billing data is unavailable, which
        callers must not read as a zero-activity period.
        """
        if not self.settings.lemonsqueezy_api_key:
            logger.warning(f"[{self.name}] API key missing, billing data unavailable")
            return []

        try:
            orders = await self._fetch_pages("orders", since=start_date)
            invoices = await self._fetch_pages("subscription-invoices", since=start_date)
            customers = await self._fetch_pages("customers")
            active_subs = await self._fetch_pages("subscriptions", status="active")

            logger.info(
                f"[{self.name}] Fetched {len(orders)} orders, {len(invoices)} invoices, "
                f"{len(customers)} customers, {len(active_subs)} active subscriptions"
            )
            return build_ledger(start_date, end_date, orders, invoices, customers, active_subs)

        except Exception as e:
            logger.error(f"[{self.name}] Error fetching billing data: {e}")
            return []

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.api+json",
            "Authorization": f"Bearer {self.settings.lemonsqueezy_api_key}",
        }

    async def _fetch_pages(
        self,
        resource: str,
        since: date | None = None,
        **filters: str,
    ) -> list[dict]:
        """Page through a list endpoint.

        Results come newest first, so with ``since`` paging stops once a
        page ends before that day. Without it every page is read. The
        reported last page, an empty page or a missing ``lastPage`` also
        end the loop.
        """
        url = f"{self.API_BASE}/{resource}"
        store_id = self.settings.lemonsqueezy_store_id
        if store_id:
            filters["store_id"] = store_id

        records: list[dict] = []
        page = 1

        while page <= self.max_pages:
            params = {f"filter[{key}]": value for key, value in filters.items()}
            params["page[number]"] = page
            params["page[size]"] = self.page_size

            payload = await self.request_json(url, params=params, headers=self._headers())
            data = payload.get("data")
            if not isinstance(data, list):
                raise CollectorError(f"Malformed {resource} page {page}")
            if not data:
                break

            records.extend(data)

            if since is not None and created_on(data[-1]) < since:
                break

            page_meta = (payload.get("meta") or {}).get("page") or {}
            last_page = page_meta.get("lastPage")
            if not last_page or page >= last_page:
                break

            page += 1
        else:
            logger.warning(f"[{self.name}] Stopped paging {resource} after {self.max_pages} pages")

        logger.info(f"[{self.name}] Read {len(records)} {resource} over {page} page(s)")
        return records
