"""Fold sparse, externally supplied figures into a budget.

The tool layer hands over a flat ``field name -> value`` record, usually
derived from a natural-language request ("I make $6k a month and pay
$1,500 rent").  :func:`reconcile` merges that record into an existing
budget without throwing away anything the user entered:

1. context flags are applied first (unemployed, homeowner, children);
2. each field group (income, expenses, liquid, non-liquid, retirement,
   liabilities) is classified once into a :data:`PatchIntent` and then
   handled by exactly one tier:

   * ``Named`` - upsert each named field onto a matching item;
   * ``AggregateOnly`` - scale existing items proportionally to the
     supplied total, or create one generic item when there is nothing to
     scale;
   * ``Unset`` - leave the group alone;

3. crypto/stock tickers are appended as unpriced holdings.

Reconciliation only ever adds items or changes amounts; it never deletes.
Missing fields skip their rule and unknown fields are ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .config import CHILDCARE_PER_CHILD_MONTHLY
from .models import (
    AssetType,
    Budget,
    Frequency,
    LineItem,
    Section,
    clamp_discount,
    coerce_amount,
    make_item,
    round2,
    utcnow,
)
from .presets import budget_from_preset
from .projection import runway_months, runway_years
from .summary import summarize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical fields
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    aliases: Tuple[str, ...] = ()

    @property
    def candidates(self) -> Tuple[str, ...]:
        return (self.label,) + self.aliases


@dataclass(frozen=True)
class FieldGroup:
    section: Section
    fields: Tuple[FieldSpec, ...]
    aggregate_key: str
    fallback_label: str
    # liability balances must not overwrite payment items of the same name
    match_frequency: Optional[Frequency] = None

    @property
    def monthly_basis(self) -> bool:
        """Aggregates for income and expenses are monthly figures."""
        return self.section in (Section.INCOME, Section.EXPENSES)

    @property
    def fallback(self) -> FieldSpec:
        return FieldSpec(self.aggregate_key, self.fallback_label)


FIELD_GROUPS: Tuple[FieldGroup, ...] = (
    FieldGroup(
        Section.INCOME,
        (
            FieldSpec('salary', 'Salary', ('wages', 'paycheck')),
            FieldSpec('side_income', 'Side Income', ('freelance', 'side hustle')),
            FieldSpec('rental_income', 'Rental Income'),
            FieldSpec('social_security', 'Social Security'),
            FieldSpec('pension_income', 'Pension'),
            FieldSpec('investment_income', 'Investment Income', ('dividends',)),
        ),
        'monthly_income',
        'Income',
    ),
    FieldGroup(
        Section.EXPENSES,
        (
            FieldSpec('rent', 'Rent'),
            FieldSpec('mortgage_payment', 'Mortgage Payment', ('mortgage',)),
            FieldSpec('utilities', 'Utilities', ('utility', 'electric')),
            FieldSpec('groceries', 'Groceries', ('grocery',)),
            FieldSpec('car_payment', 'Car Payment', ('auto loan payment',)),
            FieldSpec('car_insurance', 'Car Insurance', ('auto insurance',)),
            FieldSpec('health_insurance', 'Health Insurance', ('medical insurance',)),
            FieldSpec('phone_bill', 'Phone', ('cell phone', 'mobile')),
            FieldSpec('internet', 'Internet', ('wifi',)),
            FieldSpec('childcare', 'Childcare', ('child care', 'daycare')),
            FieldSpec('subscriptions', 'Subscriptions', ('streaming',)),
            FieldSpec('dining_out', 'Dining Out', ('restaurants',)),
            FieldSpec('transportation', 'Transportation', ('transit',)),
        ),
        'monthly_expenses',
        'Expenses',
    ),
    FieldGroup(
        Section.LIQUID_ASSETS,
        (
            FieldSpec('checking_balance', 'Checking Account', ('checking',)),
            FieldSpec('savings_balance', 'Savings Account', ('savings',)),
            FieldSpec('emergency_fund', 'Emergency Fund', ('emergency',)),
            FieldSpec('investment_balance', 'Brokerage Account', ('brokerage', 'investments')),
            FieldSpec('crypto_balance', 'Crypto', ('cryptocurrency',)),
        ),
        'liquid_assets',
        'Liquid Assets',
    ),
    FieldGroup(
        Section.NON_LIQUID_ASSETS,
        (
            FieldSpec('home_value', 'Home', ('house', 'property')),
            FieldSpec('car_value', 'Car', ('vehicle',)),
            FieldSpec('jewelry_collectibles', 'Jewelry & Collectibles', ('jewelry', 'collectibles')),
            FieldSpec('business_equity', 'Business Equity', ('business',)),
        ),
        'nonliquid_assets',
        'Non-Liquid Assets',
    ),
    FieldGroup(
        Section.RETIREMENT,
        (
            FieldSpec('balance_401k', '401(k)'),
            FieldSpec('roth_ira', 'Roth IRA'),
            FieldSpec('traditional_ira', 'Traditional IRA'),
            FieldSpec('pension_fund', 'Pension Fund'),
            FieldSpec('balance_403b', '403(b)'),
            FieldSpec('sep_ira', 'SEP IRA'),
        ),
        'retirement_savings',
        'Retirement Savings',
    ),
    FieldGroup(
        Section.LIABILITIES,
        (
            FieldSpec('mortgage_balance', 'Mortgage'),
            FieldSpec('student_loans', 'Student Loans', ('student loan',)),
            FieldSpec('car_loan', 'Car Loan', ('auto loan',)),
            FieldSpec('credit_card_debt', 'Credit Card Debt', ('credit card',)),
            FieldSpec('personal_loan', 'Personal Loan'),
            FieldSpec('medical_debt', 'Medical Debt', ('medical bills',)),
        ),
        'liabilities',
        'Total Debt',
        match_frequency=Frequency.ONE_TIME,
    ),
)

GROUPS_BY_SECTION: Dict[Section, FieldGroup] = {group.section: group for group in FIELD_GROUPS}

CHILDCARE_KEYWORDS = ('child', 'daycare', 'nanny', 'babysit', 'preschool')
_RENT_PATTERN = re.compile(r'\brent\b', re.IGNORECASE)


# ---------------------------------------------------------------------------
# Patch intent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Unset:
    """The patch says nothing about this group."""


@dataclass(frozen=True)
class Named:
    fields: Tuple[Tuple[FieldSpec, float], ...]


@dataclass(frozen=True)
class AggregateOnly:
    total: float


PatchIntent = Union[Unset, Named, AggregateOnly]


def _number(patch: Mapping[str, Any], key: str) -> Optional[float]:
    """Read a numeric patch field; ``None`` when the field is absent."""
    value = patch.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        value = value.replace(',', '').replace('$', '').strip()
        if not value:
            return None
    return coerce_amount(value)


def aggregate_total(patch: Mapping[str, Any], group: FieldGroup) -> Optional[float]:
    total = _number(patch, group.aggregate_key)
    if total is None and group.section is Section.INCOME:
        annual = _number(patch, 'annual_income')
        if annual is not None:
            total = round2(annual / 12)
    return total


def classify_group(patch: Mapping[str, Any], group: FieldGroup) -> PatchIntent:
    named = []
    for spec in group.fields:
        value = _number(patch, spec.key)
        if value is not None:
            named.append((spec, value))
    if named:
        return Named(tuple(named))
    total = aggregate_total(patch, group)
    if total is not None:
        return AggregateOnly(total)
    return Unset()


def classify_patch(patch: Mapping[str, Any]) -> Dict[Section, PatchIntent]:
    """Compute the intent for every field group in one pass."""
    return {group.section: classify_group(patch, group) for group in FIELD_GROUPS}


# ---------------------------------------------------------------------------
# Name matching
# ---------------------------------------------------------------------------


def _squash(text: str) -> str:
    return re.sub(r'[^a-z0-9]', '', (text or '').lower())


def names_match(name: str, candidate: str) -> bool:
    """Case-insensitive substring match in either direction."""
    left, right = _squash(name), _squash(candidate)
    if not left or not right:
        return False
    return left in right or right in left


def find_match(
    items: Sequence[LineItem],
    spec: FieldSpec,
    frequency: Optional[Frequency] = None,
    *,
    claim_tagged: bool = False,
) -> Optional[int]:
    """Index of the item ``spec`` should update, or ``None``.

    Items created or claimed by reconciliation carry the field key in
    ``origin`` and win over fuzzy name matches.  Live-priced items are
    never matched because their amount is not independently editable.
    With ``claim_tagged`` the name match also considers tagged items.
    """
    eligible = [
        (index, item) for index, item in enumerate(items)
        if not item.is_priced and (frequency is None or item.frequency is frequency)
    ]
    for index, item in eligible:
        if item.origin == spec.key:
            return index
    for index, item in eligible:
        if (claim_tagged or item.origin is None) and any(
            names_match(item.name, candidate) for candidate in spec.candidates
        ):
            return index
    return None


def _upsert(
    items: List[LineItem],
    spec: FieldSpec,
    amount: float,
    section: Section,
    frequency: Optional[Frequency] = None,
) -> None:
    index = find_match(items, spec, frequency)
    if index is None:
        items.append(make_item(spec.label, amount, section.default_frequency, origin=spec.key))
        logger.debug("reconcile: added %s=%s to %s", spec.key, amount, section.value)
        return
    item = items[index]
    changes: Dict[str, Any] = {'amount': amount}
    if item.origin is None:
        changes['origin'] = spec.key
    items[index] = item.with_changes(**changes)
    logger.debug("reconcile: updated %r with %s=%s", item.name, spec.key, amount)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def _basis(item: LineItem, group: FieldGroup) -> float:
    return item.monthly_value if group.monthly_basis else item.total_value


def _apply_named(items: List[LineItem], group: FieldGroup, intent: Named) -> None:
    for spec, amount in intent.fields:
        _upsert(items, spec, amount, group.section, group.match_frequency)


def _apply_aggregate(items: List[LineItem], group: FieldGroup, total: float) -> None:
    def counted(item: LineItem) -> bool:
        return group.match_frequency is None or item.frequency is group.match_frequency

    fixed_total = sum(_basis(item, group) for item in items if counted(item) and item.is_priced)
    current = sum(_basis(item, group) for item in items if counted(item) and not item.is_priced)
    target = total - fixed_total

    if current != 0:
        if total == 0:
            logger.debug("reconcile: zero aggregate for %s does not scale", group.aggregate_key)
            return
        if target <= 0:
            logger.debug("reconcile: priced holdings already cover %s", group.aggregate_key)
            return
        ratio = target / current
        for index, item in enumerate(items):
            if counted(item) and not item.is_priced:
                items[index] = item.with_changes(amount=round2(item.amount * ratio))
        logger.debug("reconcile: scaled %s by %.4f", group.section.value, ratio)
        return

    # nothing to scale: a single generic item carries the total, even when it is 0
    if target > 0 or (total == 0 and fixed_total == 0):
        _upsert(items, group.fallback, target, group.section, group.match_frequency)


def _apply_context_flags(sections: Dict[Section, List[LineItem]], patch: Mapping[str, Any]) -> None:
    if patch.get('is_unemployed') is True:
        income = sections[Section.INCOME]
        for index, item in enumerate(income):
            if item.amount != 0 and not item.is_priced:
                income[index] = item.with_changes(amount=0)
        emergency = GROUPS_BY_SECTION[Section.LIQUID_ASSETS].fields[2]
        liquid = sections[Section.LIQUID_ASSETS]
        if find_match(liquid, emergency) is None:
            liquid.append(make_item(emergency.label, 0, Frequency.ONE_TIME, origin=emergency.key))

    if patch.get('is_homeowner') is True:
        expenses = sections[Section.EXPENSES]
        for index, item in enumerate(expenses):
            if _RENT_PATTERN.search(item.name) and 'mortgage' not in item.name.lower():
                expenses[index] = item.with_changes(name='Mortgage Payment', origin='mortgage_payment')

    children = int(coerce_amount(patch.get('num_children')))
    if children > 0:
        expenses = sections[Section.EXPENSES]
        has_childcare = any(
            item.origin == 'childcare' or any(word in item.name.lower() for word in CHILDCARE_KEYWORDS)
            for item in expenses
        )
        if not has_childcare:
            expenses.append(make_item(
                'Childcare', children * CHILDCARE_PER_CHILD_MONTHLY, Frequency.MONTHLY, origin='childcare',
            ))


# ---------------------------------------------------------------------------
# Tickers
# ---------------------------------------------------------------------------


def parse_tickers(raw: Any, asset_type: AssetType) -> List[str]:
    """Split a comma separated ticker list, normalising case by convention."""
    if raw is None:
        return []
    parts: Iterable[str] = raw if isinstance(raw, (list, tuple)) else re.split(r'[,\s]+', str(raw))
    seen: List[str] = []
    for part in parts:
        ticker = str(part).strip().lstrip('$')
        if not ticker:
            continue
        ticker = ticker.lower() if asset_type is AssetType.CRYPTO else ticker.upper()
        if ticker not in seen:
            seen.append(ticker)
    return seen


def _ticker_name(ticker: str, asset_type: AssetType) -> str:
    if asset_type is AssetType.CRYPTO:
        return ticker.replace('-', ' ').title()
    return ticker


def _apply_tickers(sections: Dict[Section, List[LineItem]], patch: Mapping[str, Any]) -> None:
    held = {
        item.ticker.casefold()
        for items in sections.values() for item in items
        if item.ticker
    }
    liquid = sections[Section.LIQUID_ASSETS]
    for key, asset_type in (('crypto_tickers', AssetType.CRYPTO), ('stock_tickers', AssetType.STOCK)):
        for ticker in parse_tickers(patch.get(key), asset_type):
            if ticker.casefold() in held:
                continue
            held.add(ticker.casefold())
            liquid.append(make_item(
                _ticker_name(ticker, asset_type), 0, Frequency.ONE_TIME,
                asset_type=asset_type, ticker=ticker, quantity=0,
            ))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reconcile(base: Budget, patch: Mapping[str, Any], *, now: Optional[datetime] = None) -> Budget:
    """Merge ``patch`` into ``base`` and return the updated budget.

    Items the patch does not touch are carried over as-is.
    """
    patch = patch or {}
    sections: Dict[Section, List[LineItem]] = {section: list(base.items(section)) for section in Section}
    changes: Dict[str, Any] = {}

    name = patch.get('budget_name')
    if isinstance(name, str) and name.strip():
        changes['name'] = name.strip()
    if patch.get('nonliquid_discount') is not None:
        changes['non_liquid_discount'] = clamp_discount(_number(patch, 'nonliquid_discount'))

    _apply_context_flags(sections, patch)

    for section, intent in classify_patch(patch).items():
        group = GROUPS_BY_SECTION[section]
        if isinstance(intent, Named):
            _apply_named(sections[section], group, intent)
        elif isinstance(intent, AggregateOnly):
            _apply_aggregate(sections[section], group, intent.total)

    _apply_tickers(sections, patch)

    for section, items in sections.items():
        changes[section.attr] = tuple(items)
    return base.touch(now or utcnow(), **changes)


def build_budget(fields: Mapping[str, Any], *, now: Optional[datetime] = None) -> Budget:
    """Instantiate the requested preset (or an empty budget) and reconcile ``fields`` into it."""
    fields = fields or {}
    base = budget_from_preset(fields.get('preset'), now=now)
    return reconcile(base, fields, now=now)


def summary_record(budget: Budget, budget_name: Optional[str] = None) -> Dict[str, Any]:
    """Flat summary record returned by the budget tool."""
    summary = summarize(budget)
    return {
        'budget_name': budget_name,
        'monthly_income': summary.monthly_income,
        'monthly_expenses': summary.monthly_expenses + summary.monthly_liability_payments,
        'monthly_net': summary.monthly_net,
        'annual_net': summary.annual_net,
        'liquid_assets': summary.total_liquid,
        'nonliquid_assets': summary.total_non_liquid,
        'nonliquid_at_discount': summary.non_liquid_at_discount,
        'retirement_savings': summary.total_retirement,
        'liabilities': summary.one_time_liabilities,
        'liquid_available': summary.liquid_available,
        'net_worth': summary.net_worth,
        'runway_months': runway_months(summary),
        'runway_years': runway_years(summary),
    }


def compute_summary_from_fields(
    fields: Mapping[str, Any],
    budget: Optional[Budget] = None,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Summarise the budget built from ``fields``.

    Pass ``budget`` when it has already been built from the same fields.
    ``budget_name`` is only reported when the fields name the budget or
    pick a preset.
    """
    fields = fields or {}
    if budget is None:
        budget = build_budget(fields, now=now)
    named = bool(fields.get('budget_name') or fields.get('preset'))
    return summary_record(budget, budget.name if named else None)


# ---------------------------------------------------------------------------
# Parsed item records
# ---------------------------------------------------------------------------

_CATEGORY_SECTIONS = {
    'income': Section.INCOME,
    'expense': Section.EXPENSES,
    'expenses': Section.EXPENSES,
    'asset': Section.LIQUID_ASSETS,
    'assets': Section.LIQUID_ASSETS,
    'liquid_asset': Section.LIQUID_ASSETS,
    'non_liquid_asset': Section.NON_LIQUID_ASSETS,
    'nonliquid_asset': Section.NON_LIQUID_ASSETS,
    'retirement': Section.RETIREMENT,
    'liability': Section.LIABILITIES,
    'liabilities': Section.LIABILITIES,
}


def merge_parsed_items(
    budget: Budget,
    records: Iterable[Mapping[str, Any]],
    *,
    now: Optional[datetime] = None,
) -> Budget:
    """Upsert ``{category, name, amount, frequency}`` records by item name.

    Records with an unknown category or without a name are skipped; an
    unrecognised frequency falls back to the section default.
    """
    sections: Dict[Section, List[LineItem]] = {section: list(budget.items(section)) for section in Section}
    merged = 0
    for record in records or []:
        section = _CATEGORY_SECTIONS.get(str(record.get('category', '')).strip().lower())
        name = str(record.get('name') or '').strip()
        if section is None or not name:
            logger.debug("merge_parsed_items: skipped record %r", record)
            continue
        try:
            frequency = Frequency.parse(record.get('frequency') or section.default_frequency)
        except ValueError:
            frequency = section.default_frequency
        amount = coerce_amount(record.get('amount'))

        items = sections[section]
        index = find_match(items, FieldSpec(key='', label=name), claim_tagged=True)
        if index is None:
            items.append(make_item(name, amount, frequency))
        else:
            items[index] = items[index].with_changes(amount=amount, frequency=frequency)
        merged += 1

    if not merged:
        return budget
    return budget.touch(now, **{section.attr: tuple(items) for section, items in sections.items()})
