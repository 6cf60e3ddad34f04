"""In-memory flow-state snapshots, upserted per (user id, bill id)"""
import math
from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional, Tuple, Any
from loguru import logger

from ..models.bill_models import FlowStateSnapshot

INACTIVE_FLOW = "NONE"
DEFAULT_BILL_ID = "default"
DEFAULT_STORE_NAME = "New Split"


def _amount(value: Any) -> float:
    """Numeric money value from client-supplied JSON; anything else counts as 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _snapshot_total(bill_data: Dict[str, Any]) -> float:
    """Stated total, or items + tax + other charges - discount when none was set."""
    total = _amount(bill_data.get("total"))
    items = bill_data.get("items")
    if total == 0 and isinstance(items, list):
        subtotal = sum(_amount(item.get("price")) for item in items if isinstance(item, dict))
        total = (
            subtotal
            + _amount(bill_data.get("taxes"))
            + _amount(bill_data.get("other_charges"))
            - _amount(bill_data.get("discount"))
        )
    return total


class FlowStateStore:
    def __init__(self):
        self._records: Dict[Tuple[str, str], FlowStateSnapshot] = {}
        # Save order breaks ties between equal timestamps
        self._sequence: Dict[Tuple[str, str], int] = {}
        self._counter = count()

    def _recency(self, user_id: str, record: FlowStateSnapshot):
        return record.updated_at, self._sequence[(user_id, record.bill_id)]

    def save(
        self,
        user_id: str,
        flow: str,
        current_step: int,
        bill_data: Optional[Dict[str, Any]] = None,
        preview_image_url: Optional[str] = None,
    ) -> FlowStateSnapshot:
        bill_data = bill_data or {}
        bill_id = str(bill_data.get("id") or DEFAULT_BILL_ID)
        is_active = flow != INACTIVE_FLOW
        store_name = bill_data.get("store_name")
        if not isinstance(store_name, str) or not store_name.strip():
            store_name = DEFAULT_STORE_NAME

        # Only one active draft per user
        if is_active and current_step > 0:
            for (owner, other_bill_id), record in list(self._records.items()):
                if owner == user_id and other_bill_id != bill_id and record.is_last_active:
                    self._records[(owner, other_bill_id)] = record.model_copy(update={"is_last_active": False})

        snapshot = FlowStateSnapshot(
            flow=str(flow),
            current_step=int(current_step),
            bill_data=bill_data or None,
            preview_image_url=preview_image_url,
            updated_at=datetime.now(timezone.utc),
            bill_id=bill_id,
            is_last_active=is_active,
            store_name=store_name,
            total_amount=_snapshot_total(bill_data),
        )
        self._records[(user_id, bill_id)] = snapshot
        self._sequence[(user_id, bill_id)] = next(self._counter)
        logger.info(f"Saved flow state for user {user_id}, bill {bill_id} at step {current_step}")
        return snapshot

    def get_last(self, user_id: str) -> Optional[FlowStateSnapshot]:
        active = [
            record for (owner, _), record in self._records.items()
            if owner == user_id and record.is_last_active
        ]
        if not active:
            return None
        return max(active, key=lambda record: self._recency(user_id, record))

    def get_all(self, user_id: str) -> List[FlowStateSnapshot]:
        records = [record for (owner, _), record in self._records.items() if owner == user_id]
        return sorted(records, key=lambda record: self._recency(user_id, record), reverse=True)

    def delete(self, user_id: str, bill_id: str) -> bool:
        removed = self._records.pop((user_id, bill_id), None)
        self._sequence.pop((user_id, bill_id), None)
        if removed is None:
            logger.warning(f"No flow state to delete for user {user_id}, bill {bill_id}")
            return False
        logger.info(f"Deleted flow state for user {user_id}, bill {bill_id}")
        return True

    def clear(self) -> None:
        self._records.clear()
        self._sequence.clear()


# Global store instance
flow_state_store = FlowStateStore()
