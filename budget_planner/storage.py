"""Budget persistence: JSON snapshots, legacy migration and a small repository.

Budgets are persisted as opaque JSON blobs in a key/value store.  Two keys
are used: ``MY_BUDGET_LIST`` holds every saved budget and
``MY_BUDGET_DATA`` holds the budget currently being edited.  Blob keys are
camelCase so snapshots written by older versions of the app load
unchanged.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .common.file_operations import ensure_directory, safe_filename
from .config import (
    BUDGETS_DIR,
    BUDGETS_LIST_KEY,
    CURRENT_BUDGET_KEY,
    DEFAULT_BUDGET_NAME,
    DEFAULT_NONLIQUID_DISCOUNT,
    ensure_data_directories,
)
from .models import (
    AssetType,
    Budget,
    Frequency,
    LineItem,
    Section,
    clamp_discount,
    coerce_amount,
    generate_id,
    make_item,
    utcnow,
)

logger = logging.getLogger(__name__)

# Blob key used for liquid assets before non-liquid assets were split out
LEGACY_LIQUID_KEY = 'assets'


# ---------------------------------------------------------------------------
# Snapshot conversion
# ---------------------------------------------------------------------------


def _dump_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_time(value: Any) -> Optional[datetime]:
    """Parse an ISO string or an epoch-millisecond number."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def item_to_dict(item: LineItem) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        'id': item.id,
        'name': item.name,
        'amount': item.amount,
        'frequency': item.frequency.value,
        'totalValue': item.total_value,
        'monthlyValue': item.monthly_value,
    }
    optional = {
        'quantity': item.quantity,
        'assetType': item.asset_type.value if item.asset_type is not None else None,
        'ticker': item.ticker,
        'livePrice': item.live_price,
        'notes': item.notes,
        'origin': item.origin,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    return data


def item_from_dict(data: Dict[str, Any]) -> LineItem:
    """Rebuild a line item, migrating legacy ``totalValue``-only records.

    Raises:
        ValueError: If ``frequency`` or ``assetType`` holds an unknown value
    """
    if 'amount' in data and data.get('frequency') is not None:
        amount = coerce_amount(data.get('amount'))
        frequency = Frequency.parse(data['frequency'])
    else:
        monthly = coerce_amount(data.get('monthlyValue'))
        if monthly != 0:
            amount, frequency = monthly, Frequency.MONTHLY
        else:
            amount, frequency = coerce_amount(data.get('totalValue')), Frequency.ONE_TIME

    raw_type = data.get('assetType')
    asset_type = AssetType(raw_type) if raw_type else None
    priced = asset_type not in (None, AssetType.MANUAL)

    return make_item(
        data.get('name') or '',
        amount,
        frequency,
        quantity=data.get('quantity') if priced else None,
        asset_type=asset_type,
        ticker=data.get('ticker') if priced else None,
        live_price=data.get('livePrice') if priced else None,
        notes=data.get('notes'),
        origin=data.get('origin'),
        item_id=data.get('id') or None,
    )


def budget_to_dict(budget: Budget) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        'id': budget.id,
        'name': budget.name,
        'createdAt': _dump_time(budget.created_at),
        'updatedAt': _dump_time(budget.updated_at),
        'nonLiquidDiscount': budget.non_liquid_discount,
        'lastPriceRefresh': _dump_time(budget.last_price_refresh),
    }
    for section in Section:
        data[section.value] = [item_to_dict(item) for item in budget.items(section)]
    return data


def budget_from_dict(data: Dict[str, Any]) -> Budget:
    """Rebuild a budget from a snapshot; missing sections load as empty."""
    if not isinstance(data, dict):
        raise ValueError(f"Budget snapshot must be an object, got {type(data).__name__}")

    sections = {}
    for section in Section:
        raw = data.get(section.value)
        if raw is None and section is Section.LIQUID_ASSETS:
            raw = data.get(LEGACY_LIQUID_KEY)
        sections[section.attr] = tuple(
            item_from_dict(entry) for entry in (raw or []) if isinstance(entry, dict)
        )

    created_at = _load_time(data.get('createdAt')) or utcnow()
    discount = data.get('nonLiquidDiscount')
    return Budget(
        id=str(data.get('id') or generate_id()),
        name=str(data.get('name') or DEFAULT_BUDGET_NAME),
        created_at=created_at,
        updated_at=_load_time(data.get('updatedAt')) or created_at,
        non_liquid_discount=clamp_discount(DEFAULT_NONLIQUID_DISCOUNT if discount is None else discount),
        last_price_refresh=_load_time(data.get('lastPriceRefresh')),
        **sections,
    )


# ---------------------------------------------------------------------------
# Key/value stores
# ---------------------------------------------------------------------------


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, used by the tool server and in tests."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Stores each key as a JSON file in a directory."""

    def __init__(self, directory: Optional[Path] = None):
        """Initialize the store.

        Args:
            directory: Optional custom directory for blob files.
                       Defaults to BUDGETS_DIR from config.
        """
        if directory is None:
            ensure_data_directories()
            directory = BUDGETS_DIR
        self.directory = ensure_directory(Path(directory))

    def get_path(self, key: str) -> Path:
        return self.directory / f"{safe_filename(key, default='blob')}.json"

    def get(self, key: str) -> Optional[Any]:
        """Load the blob stored under ``key``.

        Returns ``None`` for missing files and for files that are not valid
        JSON; the latter are logged.
        """
        path = self.get_path(key)
        if not path.exists():
            return None
        try:
            with path.open('r', encoding='utf-8') as handle:
                return json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def set(self, key: str, value: Any) -> None:
        """Write ``value`` under ``key``.

        Raises:
            OSError: If the file cannot be written
        """
        target = self.get_path(key)
        ensure_directory(target.parent)
        try:
            with target.open('w', encoding='utf-8') as handle:
                json.dump(value, handle, indent=2, sort_keys=True)
        except OSError as e:
            raise OSError(f"Failed to save {key} to {target}: {e}") from e

    def delete(self, key: str) -> None:
        target = self.get_path(key)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as e:
            raise OSError(f"Failed to delete {target}: {e}") from e


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BudgetRepository:
    """Saved budgets plus the one currently being edited."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store if store is not None else JsonFileStore()

    def _raw_list(self) -> List[Dict[str, Any]]:
        raw = self.store.get(BUDGETS_LIST_KEY)
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, dict)]

    def list_budgets(self) -> List[Budget]:
        """Load every saved budget in save order.

        Entries that cannot be decoded are skipped with a warning.
        """
        budgets = []
        for entry in self._raw_list():
            try:
                budgets.append(budget_from_dict(entry))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable budget %r: %s", entry.get('name'), exc)
        return budgets

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        for budget in self.list_budgets():
            if budget.id == budget_id:
                return budget
        return None

    def save_budget(self, budget: Budget) -> None:
        """Insert or replace ``budget`` (matched by id), keeping list order.

        Raises:
            ValueError: If the budget name is empty
            OSError: If the store cannot be written
        """
        if not budget.name or not budget.name.strip():
            raise ValueError("Budget name cannot be empty")

        snapshot = budget_to_dict(budget)
        entries = self._raw_list()
        for index, entry in enumerate(entries):
            if entry.get('id') == budget.id:
                entries[index] = snapshot
                break
        else:
            entries.append(snapshot)
        self.store.set(BUDGETS_LIST_KEY, entries)

    def delete_budget(self, budget_id: str) -> bool:
        entries = self._raw_list()
        kept = [entry for entry in entries if entry.get('id') != budget_id]
        if len(kept) == len(entries):
            return False
        self.store.set(BUDGETS_LIST_KEY, kept)
        return True

    def load_current(self) -> Optional[Budget]:
        raw = self.store.get(CURRENT_BUDGET_KEY)
        if raw is None:
            return None
        try:
            return budget_from_dict(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable current budget: %s", exc)
            return None

    def save_current(self, budget: Budget) -> None:
        self.store.set(CURRENT_BUDGET_KEY, budget_to_dict(budget))
