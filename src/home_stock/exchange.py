"""Snapshot exchange: export, validation and the staged import workflow.

Snapshots travel between devices as pretty-printed UTF-8 JSON. Importing
is always two explicit steps: stage() parses and validates the candidate
without touching local state, commit() backs up the local state and then
replaces it wholesale.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ValidationError

from .errors import HomeStockError, NothingStagedError
from .ids import format_for_filename
from .models import ImportSummary, Snapshot

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"
FILENAME_PREFIX = "home-stock-"
REQUIRED_LISTS = ("categories", "shoppingItems", "stockItems")
ITEM_LISTS = ("shoppingItems", "stockItems")


class ValidationErrorKind(str, Enum):
    """Why a candidate snapshot was rejected."""

    INVALID_JSON = "invalid_json"
    NOT_AN_OBJECT = "not_an_object"
    MISSING_FIELD = "missing_field"
    NOT_AN_ARRAY = "not_an_array"
    INVALID_ITEM = "invalid_item"
    INVALID_FIELD = "invalid_field"


class SnapshotValidationError(HomeStockError):
    """Raised when a candidate snapshot fails validation."""

    error_code = "INVALID_SNAPSHOT"

    def __init__(self, kind: ValidationErrorKind, field: str | None = None, detail: str = ""):
        self.kind = kind
        self.field = field
        self.detail = detail
        message = {
            ValidationErrorKind.INVALID_JSON: "Data is not valid JSON",
            ValidationErrorKind.NOT_AN_OBJECT: "Data is not a JSON object",
            ValidationErrorKind.MISSING_FIELD: f"Required field '{field}' is missing",
            ValidationErrorKind.NOT_AN_ARRAY: f"Field '{field}' must be an array",
            ValidationErrorKind.INVALID_ITEM: f"Invalid entry in '{field}'",
            ValidationErrorKind.INVALID_FIELD: f"Invalid value for '{field}'",
        }[kind]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate(): a usable Snapshot or the reason it was rejected.

    Truthy when valid.
    """

    snapshot: Snapshot | None = None
    error: SnapshotValidationError | None = None

    def __bool__(self) -> bool:
        return self.error is None

    def unwrap(self) -> Snapshot:
        if self.error is not None:
            raise self.error
        if self.snapshot is None:
            raise ValueError("ValidationResult holds neither a snapshot nor an error")
        return self.snapshot


def _rejected(kind: ValidationErrorKind, field: str | None = None, detail: str = ""):
    return ValidationResult(error=SnapshotValidationError(kind, field, detail))


def _is_storable(value: Any) -> bool:
    try:
        json.dumps(value, ensure_ascii=False).encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _printable(text: str) -> str:
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def validate(candidate: Any) -> ValidationResult:
    """Check that a decoded candidate has the snapshot shape.

    The candidate must be an object whose categories, shoppingItems and
    stockItems are arrays. Every list entry must be an object readable as
    an item; missing item fields take their defaults.
    """
    if not isinstance(candidate, dict):
        return _rejected(ValidationErrorKind.NOT_AN_OBJECT)

    for field in REQUIRED_LISTS:
        if field not in candidate:
            return _rejected(ValidationErrorKind.MISSING_FIELD, field)
        if not isinstance(candidate[field], list):
            return _rejected(ValidationErrorKind.NOT_AN_ARRAY, field)

    for field in ITEM_LISTS:
        for index, entry in enumerate(candidate[field]):
            if not isinstance(entry, dict):
                return _rejected(
                    ValidationErrorKind.INVALID_ITEM, field, f"entry {index} is not an object"
                )

    # Lone surrogates decode from JSON escapes but cannot be stored.
    for field, value in candidate.items():
        if not _is_storable({field: value}):
            kind = (
                ValidationErrorKind.INVALID_ITEM
                if field in ITEM_LISTS
                else ValidationErrorKind.INVALID_FIELD
            )
            return _rejected(kind, _printable(field), "text is not valid UTF-8")

    try:
        snapshot = Snapshot.model_validate(candidate)
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc", ())
        field = str(loc[0]) if loc else None
        kind = (
            ValidationErrorKind.INVALID_ITEM
            if field in ITEM_LISTS
            else ValidationErrorKind.INVALID_FIELD
        )
        where = ".".join(str(part) for part in loc[1:])
        detail = f"{where}: {first.get('msg', '')}" if where else first.get("msg", "")
        return _rejected(kind, field, detail)

    return ValidationResult(snapshot=snapshot)


def decode(data: bytes | str) -> Any:
    """Decode snapshot bytes into plain JSON values.

    Raises:
        SnapshotValidationError: If the data is not UTF-8 JSON
    """
    try:
        text = data.decode("utf-8-sig") if isinstance(data, bytes) else data
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SnapshotValidationError(ValidationErrorKind.INVALID_JSON, detail=str(e)) from e


def parse_snapshot(data: bytes | str) -> ValidationResult:
    """Decode and validate in one step."""
    try:
        candidate = decode(data)
    except SnapshotValidationError as e:
        return ValidationResult(error=e)
    return validate(candidate)


def dump_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to the pretty-printed file format."""
    return json.dumps(snapshot.to_document(), ensure_ascii=False, indent=2)


@dataclass(frozen=True)
class ExportPayload:
    """A snapshot ready to hand to a share or file-transfer collaborator."""

    data: bytes
    filename: str
    content_type: str = CONTENT_TYPE


def export_filename(moment: datetime | None = None) -> str:
    return f"{FILENAME_PREFIX}{format_for_filename(moment)}.json"


def export_snapshot(snapshot: Snapshot, moment: datetime | None = None) -> ExportPayload:
    """Serialize the full snapshot, unfiltered, for transfer to another device."""
    return ExportPayload(
        data=dump_snapshot(snapshot).encode("utf-8"),
        filename=export_filename(moment),
    )


def summarize(candidate: dict[str, Any]) -> ImportSummary:
    updated_at = candidate.get("updatedAt")
    updated_by = candidate.get("updatedBy")
    return ImportSummary(
        shopping_count=len(candidate.get("shoppingItems") or []),
        stock_count=len(candidate.get("stockItems") or []),
        category_count=len(candidate.get("categories") or []),
        updated_at=str(updated_at) if updated_at else None,
        updated_by=str(updated_by) if updated_by else None,
    )


class Importer:
    """Two-phase import into a SnapshotStore.

    Nothing changes locally until commit() is called; cancel() drops the
    staged candidate.
    """

    def __init__(self, snapshot_store):
        self.snapshot_store = snapshot_store
        self._staged: Snapshot | None = None
        self._summary: ImportSummary | None = None

    @property
    def staged(self) -> bool:
        return self._staged is not None

    @property
    def summary(self) -> ImportSummary | None:
        return self._summary

    def stage(self, data: bytes | str) -> ImportSummary:
        """Parse and validate a candidate snapshot.

        Args:
            data: Snapshot bytes or text as received from another device

        Returns:
            Summary of the candidate for the user to confirm

        Raises:
            SnapshotValidationError: If the candidate is unusable; any
                previously staged candidate is discarded
        """
        self.cancel()
        candidate = decode(data)
        snapshot = validate(candidate).unwrap()

        self._staged = snapshot
        self._summary = summarize(candidate)
        logger.info(
            "Staged import: %d shopping, %d stock, %d categories",
            self._summary.shopping_count,
            self._summary.stock_count,
            self._summary.category_count,
        )
        return self._summary

    def commit(self) -> Snapshot:
        """Replace local state with the staged snapshot.

        A backup of the outgoing state is taken first. Top-level fields the
        candidate lacked carry their defaults.

        Raises:
            NothingStagedError: If stage() has not succeeded since the last
                commit or cancel
        """
        if self._staged is None:
            raise NothingStagedError()

        snapshot = self._staged
        backup_key = self.snapshot_store.backup()
        self.snapshot_store.replace(snapshot)
        self.cancel()
        logger.info("Committed import (safety backup: %s)", backup_key)
        return snapshot

    def cancel(self) -> None:
        self._staged = None
        self._summary = None
