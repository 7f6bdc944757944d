"""
Record Store Module
Reads eligible certificate rows from Airtable and records their completion
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from pyairtable import Api

from certgen.config import FieldMap, Settings
from certgen.errors import StoreError

logger = logging.getLogger(__name__)

Predicate = Tuple[str, str, str]

OPERATORS = ("=", "!=")


def _escape(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace("'", "\\'")


@dataclass(frozen=True)
class RecordFilter:
    """A conjunction of field equality / non-equality predicates."""

    predicates: Tuple[Predicate, ...] = ()

    def __post_init__(self):
        for field, op, _ in self.predicates:
            if op not in OPERATORS:
                raise ValueError(f"Unsupported operator {op!r} for field {field!r}")

    def to_formula(self) -> str:
        """
        Render the filter as an Airtable formula

        Returns:
            Formula such as AND({Status}='Generate PDF',{Name}!='')
        """
        clauses = [f"{{{field}}}{op}'{_escape(value)}'" for field, op, value in self.predicates]
        return f"AND({','.join(clauses)})"


def eligibility_filter(fields: FieldMap) -> RecordFilter:
    return RecordFilter(
        (
            (fields.status, "=", fields.pending_status),
            (fields.participant, "!=", ""),
            (fields.achievement, "!=", ""),
            (fields.attachment, "=", ""),
        )
    )


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _text(value: Any) -> str:
    value = _first(value)
    if value is None:
        return ""
    return " ".join(str(value).split())


def _image_ref(value: Any) -> str:
    value = _first(value)
    if isinstance(value, dict):
        return str(value.get("url") or "")
    return _text(value)


@dataclass(frozen=True)
class EligibleRecord:
    record_id: str
    display_id: str
    participant_name: str
    achievement_level: str
    programme_name: str
    certificate_image_ref: str

    @classmethod
    def from_fields(cls, record_id: str, fields: Dict[str, Any], field_map: FieldMap) -> "EligibleRecord":
        """
        Build a record from raw Airtable fields

        Lookup fields arrive as lists; the first element is used. Missing
        values become empty strings and are rejected later by the pipeline.
        """
        return cls(
            record_id=record_id,
            display_id=_text(fields.get(field_map.display_id)) or record_id,
            participant_name=_text(fields.get(field_map.participant)).upper(),
            achievement_level=_text(fields.get(field_map.achievement)).upper(),
            programme_name=_text(fields.get(field_map.programme)),
            certificate_image_ref=_image_ref(fields.get(field_map.certificate_image)),
        )


class AirtableStore:
    """Query and update certificate rows in one Airtable table"""

    def __init__(self, table, fields: Optional[FieldMap] = None):
        """
        Args:
            table: A pyairtable ``Table`` (or an object with the same
                ``all`` / ``update`` methods)
            fields: Column names to read and write
        """
        self.table = table
        self.fields = fields or FieldMap()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AirtableStore":
        api = Api(settings.airtable_api_key)
        table = api.table(settings.airtable_base_id, settings.airtable_table_name)
        return cls(table, settings.fields)

    def query(self, record_filter: RecordFilter, fields: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        options: Dict[str, Any] = {"formula": record_filter.to_formula()}
        if fields:
            options["fields"] = list(fields)
        try:
            return self.table.all(**options)
        except requests.RequestException as e:
            raise StoreError(f"Airtable query failed: {e}") from e

    def count(self, record_filter: RecordFilter) -> int:
        return len(self.query(record_filter, fields=[self.fields.status]))

    def eligible_records(self) -> List[EligibleRecord]:
        logger.info("Fetching records...")
        rows = self.query(eligibility_filter(self.fields))
        records = [EligibleRecord.from_fields(row["id"], row.get("fields", {}), self.fields) for row in rows]
        logger.info("Fetched %d records.", len(records))
        return records

    def count_pending(self) -> int:
        return self.count(eligibility_filter(self.fields))

    def mark_generated(self, record_id: str, url: Optional[str] = None, filename: Optional[str] = None) -> None:
        """
        Flip a processed record out of the eligibility filter

        Args:
            record_id: Airtable row id
            url: Public URL of the uploaded PDF, stored as the attachment
            filename: Attachment file name shown in Airtable
        """
        update: Dict[str, Any] = {self.fields.status: self.fields.done_status}
        if url:
            attachment = {"url": url}
            if filename:
                attachment["filename"] = filename
            update[self.fields.attachment] = [attachment]
        try:
            self.table.update(record_id, update, typecast=True)
        except requests.RequestException as e:
            raise StoreError(f"Airtable update failed for {record_id}: {e}") from e
        logger.info("Marked record %s as %s", record_id, self.fields.done_status)
