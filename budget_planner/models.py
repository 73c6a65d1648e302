"""Budget data model and frequency arithmetic.

A :class:`Budget` holds six ordered sequences of :class:`LineItem`
records.  Every line item carries a nominal ``amount`` and a
:class:`Frequency`; the derived ``total_value`` (annualised) and
``monthly_value`` are always computed through :func:`normalize` at
construction time, so a stored item is never inconsistent.

Both classes are frozen dataclasses.  Operations that "change" a budget
(see :mod:`budget_planner.budget_ops` and :mod:`budget_planner.reconcile`)
return new instances and leave the input untouched.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterator, NamedTuple, Optional, Tuple

from .config import DEFAULT_BUDGET_NAME, DEFAULT_NONLIQUID_DISCOUNT, MAX_NONLIQUID_DISCOUNT


class InvalidLineItem(ValueError):
    """Raised when a line item is built with an impossible field combination."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Frequency(str, Enum):
    MONTHLY = 'monthly'
    YEARLY = 'yearly'
    ONE_TIME = 'one_time'

    @classmethod
    def parse(cls, value: Any) -> 'Frequency':
        """Parse a frequency, accepting legacy spellings."""
        if isinstance(value, Frequency):
            return value
        key = str(value).strip().lower().replace('-', '_')
        key = _FREQUENCY_ALIASES.get(key, key)
        return cls(key)


_FREQUENCY_ALIASES = {
    'onetime': 'one_time',
    'once': 'one_time',
    'annual': 'yearly',
    'annually': 'yearly',
}


class AssetType(str, Enum):
    MANUAL = 'manual'
    CRYPTO = 'crypto'
    STOCK = 'stock'


class Section(str, Enum):
    INCOME = 'income'
    EXPENSES = 'expenses'
    LIQUID_ASSETS = 'liquidAssets'
    NON_LIQUID_ASSETS = 'nonLiquidAssets'
    RETIREMENT = 'retirement'
    LIABILITIES = 'liabilities'

    @property
    def attr(self) -> str:
        return _SECTION_ATTRS[self]

    @property
    def default_frequency(self) -> Frequency:
        if self in (Section.INCOME, Section.EXPENSES):
            return Frequency.MONTHLY
        return Frequency.ONE_TIME

    @property
    def label(self) -> str:
        return _SECTION_LABELS[self]


_SECTION_ATTRS = {
    Section.INCOME: 'income',
    Section.EXPENSES: 'expenses',
    Section.LIQUID_ASSETS: 'liquid_assets',
    Section.NON_LIQUID_ASSETS: 'non_liquid_assets',
    Section.RETIREMENT: 'retirement',
    Section.LIABILITIES: 'liabilities',
}

_SECTION_LABELS = {
    Section.INCOME: 'Income',
    Section.EXPENSES: 'Expenses',
    Section.LIQUID_ASSETS: 'Liquid Assets',
    Section.NON_LIQUID_ASSETS: 'Non-Liquid Assets',
    Section.RETIREMENT: 'Retirement',
    Section.LIABILITIES: 'Liabilities',
}

# Sections whose items may track a live market price
PRICED_SECTIONS = (Section.LIQUID_ASSETS, Section.NON_LIQUID_ASSETS, Section.RETIREMENT)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def coerce_amount(value: Any) -> float:
    """Convert user or tool input into a finite float, defaulting to 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def round2(value: float) -> float:
    """Round to cents, half away from zero.

    Goes through the shortest decimal representation of ``value`` so that
    ``round2(round2(x)) == round2(x)`` holds for every input.
    """
    number = coerce_amount(value)
    rounded = Decimal(repr(number)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0


class Normalized(NamedTuple):
    total: float
    monthly: float


def normalize(amount: Any, frequency: Frequency) -> Normalized:
    """Return the annualised total and monthly equivalent of ``amount``."""
    value = coerce_amount(amount)
    frequency = Frequency.parse(frequency)
    if frequency is Frequency.MONTHLY:
        return Normalized(total=coerce_amount(value * 12), monthly=value)
    if frequency is Frequency.YEARLY:
        return Normalized(total=value, monthly=round2(value / 12))
    return Normalized(total=value, monthly=0.0)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    amount: float
    frequency: Frequency
    total_value: float
    monthly_value: float
    quantity: Optional[float] = None
    asset_type: Optional[AssetType] = None
    ticker: Optional[str] = None
    live_price: Optional[float] = None
    notes: Optional[str] = None
    origin: Optional[str] = None  # canonical reconcile field that created/claimed the item

    @property
    def is_priced(self) -> bool:
        """True when ``amount`` is derived from ``live_price * quantity``."""
        return self.quantity is not None and self.live_price is not None

    @property
    def tracks_price(self) -> bool:
        return self.asset_type not in (None, AssetType.MANUAL) and bool(self.ticker)

    def with_changes(self, **changes: Any) -> 'LineItem':
        """Return a copy with ``changes`` applied and derived values recomputed."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown line item field(s): {', '.join(sorted(unknown))}")
        values = {name: getattr(self, name) for name in _EDITABLE_FIELDS}
        values.update(changes)
        return make_item(item_id=self.id, **values)


_EDITABLE_FIELDS = {
    'name', 'amount', 'frequency', 'quantity', 'asset_type', 'ticker', 'live_price', 'notes', 'origin',
}


def _optional_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    return coerce_amount(value)


def make_item(
    name: str = '',
    amount: Any = 0,
    frequency: Any = Frequency.MONTHLY,
    *,
    quantity: Any = None,
    asset_type: Any = None,
    ticker: Optional[str] = None,
    live_price: Any = None,
    notes: Optional[str] = None,
    origin: Optional[str] = None,
    item_id: Optional[str] = None,
) -> LineItem:
    """Build a :class:`LineItem`, validating fields and deriving totals.

    ``quantity``, ``live_price`` and ``ticker`` only make sense for items
    priced from a market feed, so they require a non-manual ``asset_type``.
    When both ``quantity`` and ``live_price`` are known the supplied
    ``amount`` is ignored in favour of ``round2(live_price * quantity)``.
    """
    kind = AssetType(asset_type) if asset_type is not None else None
    ticker = ticker.strip() if isinstance(ticker, str) and ticker.strip() else None
    if kind in (None, AssetType.MANUAL) and (
        quantity is not None or live_price is not None or ticker is not None
    ):
        raise InvalidLineItem(
            f"quantity, live_price and ticker require a crypto or stock asset type (item {name!r})"
        )

    freq = Frequency.parse(frequency)
    qty = _optional_number(quantity)
    price = _optional_number(live_price)
    value = coerce_amount(amount)
    if qty is not None and price is not None:
        value = round2(price * qty)

    normalized = normalize(value, freq)
    return LineItem(
        id=item_id or generate_id(),
        name=str(name or '').strip(),
        amount=value,
        frequency=freq,
        total_value=normalized.total,
        monthly_value=normalized.monthly,
        quantity=qty,
        asset_type=kind,
        ticker=ticker,
        live_price=price,
        notes=notes,
        origin=origin,
    )


# ---------------------------------------------------------------------------
# Budget aggregate
# ---------------------------------------------------------------------------


def clamp_discount(value: Any) -> float:
    """Clamp a non-liquid discount percentage to the supported 0-75 range."""
    return min(MAX_NONLIQUID_DISCOUNT, max(0.0, coerce_amount(value)))


@dataclass(frozen=True)
class Budget:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    income: Tuple[LineItem, ...] = ()
    expenses: Tuple[LineItem, ...] = ()
    liquid_assets: Tuple[LineItem, ...] = ()
    non_liquid_assets: Tuple[LineItem, ...] = ()
    retirement: Tuple[LineItem, ...] = ()
    liabilities: Tuple[LineItem, ...] = ()
    non_liquid_discount: float = DEFAULT_NONLIQUID_DISCOUNT
    last_price_refresh: Optional[datetime] = None

    def items(self, section: Section) -> Tuple[LineItem, ...]:
        return getattr(self, Section(section).attr)

    def iter_items(self) -> Iterator[Tuple[Section, LineItem]]:
        for section in Section:
            for item in self.items(section):
                yield section, item

    @property
    def item_count(self) -> int:
        return sum(len(self.items(section)) for section in Section)

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def replace_section(self, section: Section, items, now: Optional[datetime] = None) -> 'Budget':
        """Return a copy with ``section`` replaced by ``items`` and ``updated_at`` bumped."""
        return self.touch(now, **{Section(section).attr: tuple(items)})

    def touch(self, now: Optional[datetime] = None, **changes: Any) -> 'Budget':
        """Return a copy with ``changes`` applied and ``updated_at`` bumped."""
        return replace(self, updated_at=now or utcnow(), **changes)


def new_budget(
    name: str = DEFAULT_BUDGET_NAME,
    *,
    now: Optional[datetime] = None,
    budget_id: Optional[str] = None,
    non_liquid_discount: float = DEFAULT_NONLIQUID_DISCOUNT,
) -> Budget:
    """Create an empty budget."""
    stamp = now or utcnow()
    return Budget(
        id=budget_id or generate_id(),
        name=name,
        created_at=stamp,
        updated_at=stamp,
        non_liquid_discount=clamp_discount(non_liquid_discount),
    )
