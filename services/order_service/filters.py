"""
Production-floor filters for the orders list of one meat type.

The admin panel narrows the snapshot by free-text search, production status,
cut, weight and pickup day. Each filter compiles to a SQL condition so the
database does the narrowing.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from fastapi import Query
from sqlalchemy import Select, and_, false, or_

from shared.config import settings
from shared.errors import BadRequestError

from .models import NEW_ORDER_WINDOW, STATUS_DONE, STATUS_PENDING, Order

STATUS_NEW = "new"
STATUS_CHOICES = {STATUS_PENDING, STATUS_DONE, STATUS_NEW}

DATE_ALL = "all"
DATE_TODAY = "today"
DATE_TOMORROW = "tomorrow"
DATE_CUSTOM = "custom"
DATE_CHOICES = {DATE_ALL, DATE_TODAY, DATE_TOMORROW, DATE_CUSTOM}


@dataclass
class ProductionFilters:
    search: str = ""
    statuses: set[str] = field(default_factory=set)
    cuts: set[str] = field(default_factory=set)
    weights: set[str] = field(default_factory=set)
    pickup_day: str = DATE_ALL
    custom_date: date | None = None

    def __post_init__(self):
        unknown = self.statuses - STATUS_CHOICES
        if unknown:
            raise BadRequestError(f"Unknown status filter: {', '.join(sorted(unknown))}")
        if self.pickup_day not in DATE_CHOICES:
            raise BadRequestError(f"Unknown date filter: {self.pickup_day}")
        if self.pickup_day == DATE_CUSTOM and self.custom_date is None:
            raise BadRequestError("customDate required for custom date filter")


def production_filters(
    search: str = Query(default=""),
    status: list[str] = Query(default=[]),
    cut: list[str] = Query(default=[]),
    weight: list[str] = Query(default=[]),
    date_filter: str = Query(default=DATE_ALL, alias="date"),
    custom_date: date | None = Query(default=None, alias="customDate"),
) -> ProductionFilters:
    """Query-string dependency: ?search=&status=pending&cut=..&weight=..&date=custom&customDate=YYYY-MM-DD"""
    return ProductionFilters(
        search=search.strip(),
        statuses={s.lower() for s in status if s},
        cuts={c for c in cut if c},
        weights={w for w in weight if w},
        pickup_day=date_filter.lower(),
        custom_date=custom_date,
    )


def pickup_day_bounds(day: date, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar day in the shop's timezone."""
    tz = ZoneInfo(tz_name or settings.SHOP_TIMEZONE)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _selected_day(filters: ProductionFilters, now: datetime) -> date | None:
    today = now.astimezone(ZoneInfo(settings.SHOP_TIMEZONE)).date()
    if filters.pickup_day == DATE_TODAY:
        return today
    if filters.pickup_day == DATE_TOMORROW:
        return today + timedelta(days=1)
    if filters.pickup_day == DATE_CUSTOM:
        return filters.custom_date
    return None


def apply_filters(stmt: Select, filters: ProductionFilters, now: datetime | None = None) -> Select:
    now = now or datetime.now(timezone.utc)

    if filters.search:
        # Literal substring; % and _ in the search box match themselves
        stmt = stmt.where(
            or_(
                Order.customer_name.icontains(filters.search, autoescape=True),
                Order.id.icontains(filters.search, autoescape=True),
            )
        )

    if filters.statuses:
        conditions = []
        if STATUS_PENDING in filters.statuses:
            conditions.append(Order.is_finished.is_(False))
        if STATUS_DONE in filters.statuses:
            conditions.append(Order.is_finished.is_(True))
        if STATUS_NEW in filters.statuses:
            conditions.append(Order.created_at >= now - NEW_ORDER_WINDOW)
        stmt = stmt.where(or_(*conditions) if conditions else false())

    if filters.cuts:
        stmt = stmt.where(Order.cut.in_(filters.cuts))

    if filters.weights:
        stmt = stmt.where(Order.weight.in_(filters.weights))

    day = _selected_day(filters, now)
    if day is not None:
        start, end = pickup_day_bounds(day)
        stmt = stmt.where(and_(Order.pickup_date >= start, Order.pickup_date < end))

    return stmt
