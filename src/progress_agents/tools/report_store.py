"""
Report Store
File-backed JSON store for progress report documents.

One document per report at <root>/<report_id>.json, camelCase keys as
produced by Report.to_document(). Writes replace the whole file atomically
(temp file + os.replace), so a crash mid-write never leaves a partial
document behind.

Error model:
    - store root missing or unreadable  -> StoreUnavailableError (structural)
    - unknown report id                 -> ReportNotFoundError
    - file is not valid JSON            -> MalformedInputError (per report)
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from progress_agents.exceptions import (
    MalformedInputError,
    ReportNotFoundError,
    StoreUnavailableError,
)
from progress_agents.schemas.report_input import Report, load_report

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class ReportStore(Protocol):
    def get(self, report_id: str) -> dict: ...

    def load(self, report_id: str) -> Report: ...

    def put(self, document: Union[dict, Report]) -> str: ...

    def update_fields(self, report_id: str, fields: dict[str, Any]) -> dict: ...

    def list_ids(self) -> list[str]: ...

    def most_recent(self) -> Optional[str]: ...


class JsonReportStore:
    """ReportStore over a directory of JSON files."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _check_root(self) -> None:
        if not self.root.is_dir():
            raise StoreUnavailableError(f"Report store directory '{self.root}' not found")

    def _path(self, report_id: str) -> Path:
        if not isinstance(report_id, str) or not _SAFE_ID.match(report_id):
            raise MalformedInputError(f"Invalid report id {report_id!r}")
        return self.root / f"{report_id}.json"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, report_id: str) -> dict:
        """Raw stored document."""
        self._check_root()
        path = self._path(report_id)
        if not path.exists():
            raise ReportNotFoundError(f"Report '{report_id}' not found")
        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Report '{report_id}' is not valid JSON: {e}") from e
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read report '{report_id}': {e}") from e
        if not isinstance(document, dict):
            raise MalformedInputError(f"Report '{report_id}' is not a JSON object")
        return document

    def load(self, report_id: str) -> Report:
        """Stored document validated into a Report."""
        return load_report(self.get(report_id))

    def list_ids(self) -> list[str]:
        self._check_root()
        try:
            return sorted(
                p.stem for p in self.root.glob("*.json")
                if p.is_file() and _SAFE_ID.match(p.stem)
            )
        except OSError as e:
            raise StoreUnavailableError(f"Cannot list report store '{self.root}': {e}") from e

    def most_recent(self) -> Optional[str]:
        """Id of the newest report by createdAt (file mtime when absent)."""
        newest: Optional[tuple[float, str]] = None
        for report_id in self.list_ids():
            path = self._path(report_id)
            stamp = path.stat().st_mtime
            try:
                created = self.get(report_id).get("createdAt")
                if created:
                    stamp = datetime.fromisoformat(str(created).replace("Z", "+00:00")).timestamp()
            except (MalformedInputError, ValueError):
                pass
            if newest is None or stamp > newest[0]:
                newest = (stamp, report_id)
        return newest[1] if newest else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _write(self, report_id: str, document: dict) -> None:
        path = self._path(report_id)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{report_id}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, default=str)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write report '{report_id}': {e}") from e

    def put(self, document: Union[dict, Report]) -> str:
        """Insert or replace a whole document. Returns its id."""
        self._check_root()
        if isinstance(document, Report):
            document = document.to_document()
        report_id = document.get("id") if isinstance(document, dict) else None
        if not report_id:
            raise MalformedInputError("Report document has no 'id'")
        self._write(report_id, document)
        logger.debug(f"Stored report {report_id}")
        return report_id

    def update_fields(self, report_id: str, fields: dict[str, Any]) -> dict:
        """Overwrite top-level fields of an existing document; returns the new document."""
        document = self.get(report_id)
        document.update(fields)
        self._write(report_id, document)
        return document
