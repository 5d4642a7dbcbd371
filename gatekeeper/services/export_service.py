# =======================================================================================
# gatekeeper/services/export_service.py - CSV Export of Entries
# =======================================================================================
import csv
import io
import json
from datetime import datetime
from typing import Iterable, List, Optional

from ..models.schemas import Entry
from ..time_utils import to_wire, utcnow

CSV_COLUMNS: List[str] = [
    "record_id",
    "entry_type",
    "checkpoint_id",
    "logging_user_id",
    "created_at",
    "client_timestamp",
    "status",
    "payload",
]


class ExportService:
    """Renders role-filtered entries as a CSV document."""

    @staticmethod
    def export_filename(now: Optional[datetime] = None) -> str:
        stamp = (now or utcnow()).strftime("%Y-%m-%d_%H-%M-%S")
        return f"gatekeeper_entries_{stamp}.csv"

    @staticmethod
    def entry_row(entry: Entry) -> List[str]:
        payload = json.dumps(entry.payload, sort_keys=True, default=str)
        return [
            entry.record_id,
            entry.entry_type.value,
            entry.checkpoint_id,
            entry.logging_user_id,
            to_wire(entry.created_at) or "",
            to_wire(entry.client_timestamp) or "",
            entry.status.value,
            payload,
        ]

    def entries_to_csv(self, entries: Iterable[Entry]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_COLUMNS)
        for entry in entries:
            writer.writerow(self.entry_row(entry))
        return buffer.getvalue()
