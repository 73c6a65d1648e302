"""Infer reconcile fields from a free-form budget description.

The MCP host does not always pass structured arguments; sometimes all we
get is the user's message ("I'm 34, married with 2 kids, we make $9k a
month and owe $12k on a car").  :func:`infer_fields` pulls what it can out
of that text with a handful of regular expressions.  Anything the caller
already supplied explicitly is left alone.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

_AMOUNT = r'\$?\s*(\d[\d,]*(?:\.\d+)?)\s*([kKmM])?\b'
_DOLLARS = re.compile(r'^\$?\s*(\d[\d,]*(?:\.\d+)?)\s*([kKmM])?')

_TOKEN_PREFIX = re.compile(r'^v\d+/')
_TOKEN_BODY = re.compile(r'^[A-Za-z0-9+/=]{20,}$')

_AGE_PATTERNS = (
    re.compile(r'\b(\d{1,3})\s*(?:year|yr|y\.?o\.?)s?\s*old\b', re.IGNORECASE),
    re.compile(r'\bage\s*(?:of\s*)?(\d{1,3})\b', re.IGNORECASE),
    re.compile(r"\bi(?:'m|\s+am)\s+(\d{1,3})\b", re.IGNORECASE),
)

_PRESET_KEYWORDS = (
    ('retiree', re.compile(r'\bretir|\bsocial\s+security\b|\bpension\b|\bsenior\b|\belder', re.IGNORECASE)),
    ('family', re.compile(
        r'\bfamil|\bkid|\bchild|\bparent|\bdual[\s-]*income|\bmarried|\bcouple|\bhousehold', re.IGNORECASE,
    )),
    ('millennial', re.compile(r'\bmillennial|\bmid[\s-]*career|\bprofessional|\bsingle\s+adult', re.IGNORECASE)),
    ('gen_z', re.compile(
        r'\bgen[\s-]*z\b|\bcollege|\bstudent|\byoung|\bteen|\bentry[\s-]*level|\bstarting\s+out|\bfirst\s+job',
        re.IGNORECASE,
    )),
)

_HOMEOWNER = re.compile(
    r'\b(?:own|bought|purchased)\s+(?:a\s+|my\s+|our\s+)?(?:home|house|condo|property)\b|\bhomeowner\b|\bmortgage\b',
    re.IGNORECASE,
)
_UNEMPLOYED = re.compile(
    r'\bunemploy|\bbetween\s+jobs\b|\blost\s+(?:my\s+)?job\b|\bno\s+(?:income|job|work)\b|\blaid\s+off\b',
    re.IGNORECASE,
)
_CHILDREN = (
    re.compile(r'\b(\d)\s*(?:kids?|children|child)\b', re.IGNORECASE),
    re.compile(r'\b(?:have|with)\s+(\d)\s+(?:kids?|children)\b', re.IGNORECASE),
)

_CRYPTO_IDS = {
    'bitcoin': 'bitcoin',
    'btc': 'bitcoin',
    'ethereum': 'ethereum',
    'eth': 'ethereum',
    'solana': 'solana',
    'sol': 'solana',
    'dogecoin': 'dogecoin',
    'doge': 'dogecoin',
    'cardano': 'cardano',
    'ada': 'cardano',
    'xrp': 'ripple',
}
_HAS_CRYPTO = re.compile(r'\b(?:crypto|bitcoin|btc|ethereum|eth|solana|sol|dogecoin|doge)', re.IGNORECASE)
_HAS_STOCKS = re.compile(r'\b(?:stock|brokerage|etf|equity|shares|portfolio|invest)', re.IGNORECASE)
_STOCK_SYMBOL = re.compile(r'\$([A-Z]{1,5})\b')

_BUDGET_NAME = re.compile(r'(?:my\s+|a\s+|create\s+(?:a\s+)?)?(\w+(?:\s+\w+)?)\s+budget\b', re.IGNORECASE)
_NAME_PREFIX = re.compile(r'^(?:my|a|an|the|create)\s+', re.IGNORECASE)

_MONTHLY_INCOME = re.compile(
    r'(?:make|earn|income|salary|take\s+home)[^.]*?' + _AMOUNT + r'\s*(?:/|a|per)?\s*(?:month|mo)(?:ly)?\b',
    re.IGNORECASE,
)
_ANY_INCOME = re.compile(r'(?:make|earn|income|salary)[^.]*?' + _AMOUNT, re.IGNORECASE)
_RENT = (
    re.compile(r'\brent[^.]*?\$\s*(\d[\d,]*(?:\.\d+)?)\s*([kK])?', re.IGNORECASE),
    re.compile(r'\$\s*(\d[\d,]*)()\s*(?:/?\s*(?:mo|month))?\s*(?:in\s+)?rent\b', re.IGNORECASE),
)
_STUDENT_LOANS = re.compile(r'\bstudent\s+loans?[^.]*?\$\s*(\d[\d,]*(?:\.\d+)?)\s*([kK])?', re.IGNORECASE)
_CREDIT_CARD = re.compile(r'\bcredit\s+cards?[^.]*?\$\s*(\d[\d,]*(?:\.\d+)?)\s*([kK])?', re.IGNORECASE)
_LIQUID = re.compile(r'(?:savings?|bank|liquid|cash|checking)[^.]*?' + _AMOUNT, re.IGNORECASE)
_DEBT = re.compile(r'(?:owe|debt|liabilit)[^.]*?' + _AMOUNT, re.IGNORECASE)
_HOME_VALUE = re.compile(
    r'\b(?:home|house|property)\s+(?:is\s+)?(?:worth|valued?\s+at)[^.]*?\$\s*(\d[\d,]*(?:\.\d+)?)\s*([kKmM])?',
    re.IGNORECASE,
)
_RETIREMENT = re.compile(r'\b(?:401\(?k\)?|retirement|ira)[^.]*?\$\s*(\d[\d,]*(?:\.\d+)?)\s*([kK])?', re.IGNORECASE)

_EXPENSES = re.compile(r'(?:spend|expense|rent|mortgage|bills?)[^.]*?' + _AMOUNT, re.IGNORECASE)
_LOAN_DEBT = re.compile(r'(?:owe|debt|loan|liabilit)[^.]*?' + _AMOUNT, re.IGNORECASE)


def looks_like_token(text: str) -> bool:
    """True for strings that look like an encoded token rather than prose."""
    if ' ' not in text and len(text) > 20:
        return True
    return bool(_TOKEN_PREFIX.match(text) or _TOKEN_BODY.match(text))


def parse_dollars(raw: str) -> Optional[float]:
    """Parse a dollar figure such as ``'$1,500'``, ``'5k'`` or ``'1.2M'``.

    Returns ``None`` when no number can be read.
    """
    if raw is None:
        return None
    match = _DOLLARS.match(str(raw).strip())
    if not match:
        return None
    value = float(match.group(1).replace(',', ''))
    suffix = (match.group(2) or '').lower()
    if suffix == 'k':
        value *= 1_000
    elif suffix == 'm' and value < 1000:
        value *= 1_000_000
    return value


def _amount(match: Optional[re.Match]) -> Optional[float]:
    if match is None:
        return None
    return parse_dollars(match.group(1) + (match.group(2) or ''))


def infer_preset(text: str) -> Optional[str]:
    """Guess a life-stage preset from a stated age or keywords."""
    lowered = text.lower()
    for pattern in _AGE_PATTERNS:
        match = pattern.search(text)
        if match:
            age = int(match.group(1))
            if age >= 60:
                return 'retiree'
            if age >= 30 and any(word in lowered for word in ('kid', 'child', 'family', 'married')):
                return 'family'
            if age >= 29:
                return 'millennial'
            if age >= 14:
                return 'gen_z'
            break
    for preset, pattern in _PRESET_KEYWORDS:
        if pattern.search(text):
            return preset
    return None


def infer_crypto_tickers(text: str) -> List[str]:
    found: List[str] = []
    for keyword, coin_id in _CRYPTO_IDS.items():
        if re.search(rf'\b{keyword}\b', text, re.IGNORECASE) and coin_id not in found:
            found.append(coin_id)
    return found


def infer_fields(text: Optional[str], fields: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Fill missing reconcile fields from ``text``.

    Parameters
    ----------
    text:
        The user's message.  Encoded tokens and empty strings are ignored.
    fields:
        Explicitly supplied fields.  These always win over anything
        inferred from the text.

    Returns
    -------
    dict
        A new field record; ``fields`` is not modified.
    """
    result: Dict[str, Any] = dict(fields or {})
    text = (text or '').strip()
    if not text or looks_like_token(text):
        return result

    def missing(*keys: str) -> bool:
        return all(result.get(key) is None for key in keys)

    if missing('preset'):
        preset = infer_preset(text)
        if preset:
            result['preset'] = preset

    if missing('is_homeowner') and _HOMEOWNER.search(text):
        result['is_homeowner'] = True
    if missing('is_unemployed') and _UNEMPLOYED.search(text):
        result['is_unemployed'] = True
    if missing('num_children'):
        for pattern in _CHILDREN:
            match = pattern.search(text)
            if match:
                result['num_children'] = int(match.group(1))
                break

    if missing('has_crypto') and _HAS_CRYPTO.search(text):
        result['has_crypto'] = True
    if missing('has_stocks') and _HAS_STOCKS.search(text):
        result['has_stocks'] = True
    if missing('crypto_tickers'):
        coins = infer_crypto_tickers(text)
        if coins:
            result['crypto_tickers'] = ','.join(coins)
    if missing('stock_tickers'):
        symbols = list(dict.fromkeys(_STOCK_SYMBOL.findall(text)))
        if symbols:
            result['stock_tickers'] = ','.join(symbols)

    if missing('budget_name'):
        match = _BUDGET_NAME.search(text)
        if match:
            stem = _NAME_PREFIX.sub('', match.group(1).strip())
            if stem and stem.lower() not in ('my', 'a', 'the', 'create'):
                result['budget_name'] = f'{stem.title()} Budget'

    if missing('monthly_income', 'annual_income', 'salary'):
        monthly = _amount(_MONTHLY_INCOME.search(text))
        if monthly:
            result['monthly_income'] = monthly
        else:
            annual = _amount(_ANY_INCOME.search(text))
            # bare figures above $10k are read as yearly pay
            if annual and annual > 10_000:
                result['annual_income'] = annual

    if missing('rent'):
        for pattern in _RENT:
            value = _amount(pattern.search(text))
            if value:
                if value < 10_000:
                    result['rent'] = value
                break
    if missing('student_loans'):
        value = _amount(_STUDENT_LOANS.search(text))
        if value:
            result['student_loans'] = value
    if missing('credit_card_debt'):
        value = _amount(_CREDIT_CARD.search(text))
        if value:
            result['credit_card_debt'] = value

    if missing('liquid_assets', 'savings_balance'):
        value = _amount(_LIQUID.search(text))
        if value and value > 100:
            result['liquid_assets'] = value

    if missing('liabilities', 'student_loans', 'credit_card_debt', 'mortgage_balance'):
        value = _amount(_DEBT.search(text))
        if value and value > 100:
            result['liabilities'] = value

    if missing('home_value'):
        value = _amount(_HOME_VALUE.search(text))
        if value and value > 10_000:
            result['home_value'] = value

    if missing('retirement_savings', 'balance_401k'):
        value = _amount(_RETIREMENT.search(text))
        if value and value > 100:
            result['retirement_savings'] = value

    if missing('budget_description') and len(text) > 10:
        result['budget_description'] = text
    return result


def fallback_parse_budget_text(text: str) -> List[Dict[str, Any]]:
    """Very small rule-based parser producing ``merge_parsed_items`` records."""
    items: List[Dict[str, Any]] = []
    text = text or ''

    income = _amount(_ANY_INCOME.search(text))
    if income:
        items.append({'category': 'income', 'name': 'Salary', 'amount': income, 'frequency': 'monthly'})

    match = _EXPENSES.search(text)
    expense = _amount(match)
    if expense:
        phrase = match.group(0).lower()
        if 'rent' in phrase:
            name = 'Rent'
        elif 'mortgage' in phrase:
            name = 'Mortgage'
        else:
            name = 'Monthly Expenses'
        items.append({'category': 'expense', 'name': name, 'amount': expense, 'frequency': 'monthly'})

    savings = _amount(re.search(r'(?:savings?|bank|cash)[^.]*?' + _AMOUNT, text, re.IGNORECASE))
    if savings and savings > 100:
        items.append({'category': 'asset', 'name': 'Savings', 'amount': savings, 'frequency': 'one_time'})

    debt = _amount(_LOAN_DEBT.search(text))
    if debt and debt > 100:
        items.append({'category': 'liability', 'name': 'Debt', 'amount': debt, 'frequency': 'one_time'})
    return items
