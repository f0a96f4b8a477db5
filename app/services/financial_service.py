"""
Financial Aggregator: account-sale revenue vs. organizational liability.

The period window filters by the CLIENT's creation date (client cohort),
not by when a sale or cost was recorded.

    period "30"  → clients created in the last 30 days
    period "60"  → clients created in the last 60 days
    period "all" → no lower bound

SUPER_ADMIN sees every client; every other role sees only the clients it
owns (created_by_id).
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func

from app.core.exceptions import ValidationError
from app.models import db
from app.models.client import Client, OrganizationCost, PlayConsoleStatus
from app.services import access_scope

logger = logging.getLogger(__name__)

PERIODS = {"30": 30, "60": 60, "all": None}


def period_cutoff(period: str, now: datetime | None = None) -> datetime | None:
    if period not in PERIODS:
        raise ValidationError(
            "period must be one of: 30, 60, all", details={"field": "period"},
        )
    days = PERIODS[period]
    if days is None:
        return None
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


def _scoped(query, cutoff, owner_id):
    query = query.join(Client)
    if cutoff is not None:
        query = query.filter(Client.created_at >= cutoff)
    if owner_id is not None:
        query = query.filter(Client.created_by_id == owner_id)
    return query


def get_dashboard_stats(period: str, user) -> dict:
    """FinancialSummary for the caller's scope."""
    period = (period or "all").strip().lower()
    cutoff = period_cutoff(period)
    owner_id = access_scope.client_scope_owner_id(user)

    sale_total, sale_count = _scoped(
        db.session.query(
            func.coalesce(func.sum(PlayConsoleStatus.account_sale_amount), 0.0),
            func.count(PlayConsoleStatus.id),
        ).select_from(PlayConsoleStatus),
        cutoff, owner_id,
    ).filter(PlayConsoleStatus.account_sale_complete.is_(True)).one()

    domain, play_console, other = _scoped(
        db.session.query(
            func.coalesce(func.sum(OrganizationCost.domain_cost), 0.0),
            func.coalesce(func.sum(OrganizationCost.play_console_fee), 0.0),
            func.coalesce(func.sum(OrganizationCost.other_costs), 0.0),
        ).select_from(OrganizationCost),
        cutoff, owner_id,
    ).one()

    sale_total = float(sale_total)
    liability_total = float(domain) + float(play_console) + float(other)

    return {
        "accountSale": {"total": sale_total, "count": int(sale_count)},
        "orgLiability": {
            "total": liability_total,
            "breakdown": {
                "domain": float(domain),
                "playConsole": float(play_console),
                "other": float(other),
            },
        },
        "netProfit": sale_total - liability_total,
        "period": period,
    }
