"""
Report Store Tests
File-backed JSON store: reads, writes and the error model.
"""

from __future__ import annotations

import json

import pytest

from progress_agents.exceptions import (
    MalformedInputError,
    ReportNotFoundError,
    StoreUnavailableError,
)
from progress_agents.schemas.report_input import load_report
from progress_agents.tools.report_store import JsonReportStore

from tests.fixtures.conftest import EYP_REPORT, TRADITIONAL_REPORT, sample_report, write_document


class TestReads:

    @pytest.mark.schema
    def test_get_and_load(self, tmp_path):
        write_document(tmp_path, EYP_REPORT)
        store = JsonReportStore(tmp_path)
        assert store.get("rpt-eyp-001") == EYP_REPORT
        assert store.load("rpt-eyp-001").student_id == "stu-001"

    @pytest.mark.schema
    def test_list_ids_sorted(self, tmp_path):
        write_document(tmp_path, TRADITIONAL_REPORT)
        write_document(tmp_path, EYP_REPORT)
        (tmp_path / "notes.txt").write_text("ignore me", encoding="utf-8")
        assert JsonReportStore(tmp_path).list_ids() == ["rpt-eyp-001", "rpt-trad-005"]

    @pytest.mark.behavior
    def test_most_recent_by_created_at(self, tmp_path):
        write_document(tmp_path, TRADITIONAL_REPORT)
        write_document(tmp_path, EYP_REPORT)
        assert JsonReportStore(tmp_path).most_recent() == "rpt-trad-005"

    @pytest.mark.behavior
    def test_most_recent_empty_store(self, tmp_path):
        assert JsonReportStore(tmp_path).most_recent() is None

    @pytest.mark.behavior
    def test_unknown_id(self, tmp_path):
        with pytest.raises(ReportNotFoundError):
            JsonReportStore(tmp_path).get("rpt-missing")

    @pytest.mark.behavior
    @pytest.mark.parametrize("report_id", ["../etc/passwd", "", ".hidden", "a/b"])
    def test_unsafe_id(self, tmp_path, report_id):
        with pytest.raises(MalformedInputError):
            JsonReportStore(tmp_path).get(report_id)

    @pytest.mark.behavior
    def test_corrupt_json(self, tmp_path):
        (tmp_path / "rpt-corrupt.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(MalformedInputError):
            JsonReportStore(tmp_path).get("rpt-corrupt")

    @pytest.mark.behavior
    def test_non_object_json(self, tmp_path):
        (tmp_path / "rpt-list.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(MalformedInputError):
            JsonReportStore(tmp_path).get("rpt-list")

    @pytest.mark.behavior
    def test_missing_root(self, tmp_path):
        store = JsonReportStore(tmp_path / "missing")
        with pytest.raises(StoreUnavailableError):
            store.list_ids()
        with pytest.raises(StoreUnavailableError):
            store.get("rpt-eyp-001")


class TestWrites:

    @pytest.mark.schema
    def test_put_dict(self, tmp_path):
        store = JsonReportStore(tmp_path)
        assert store.put(sample_report(EYP_REPORT)) == "rpt-eyp-001"
        assert json.loads((tmp_path / "rpt-eyp-001.json").read_text(encoding="utf-8"))["studentId"] == "stu-001"

    @pytest.mark.schema
    def test_put_report(self, tmp_path):
        store = JsonReportStore(tmp_path)
        store.put(load_report(sample_report(TRADITIONAL_REPORT, grade="5")))
        assert store.get("rpt-trad-005")["grade"] == "5"

    @pytest.mark.behavior
    def test_put_without_id(self, tmp_path):
        with pytest.raises(MalformedInputError):
            JsonReportStore(tmp_path).put({"studentId": "s"})

    @pytest.mark.behavior
    def test_update_fields_keeps_other_fields(self, tmp_path):
        write_document(tmp_path, EYP_REPORT)
        store = JsonReportStore(tmp_path)
        updated = store.update_fields("rpt-eyp-001", {"grade": "3D"})
        assert updated["grade"] == "3D"
        assert store.get("rpt-eyp-001")["teacherComments"] == EYP_REPORT["teacherComments"]

    @pytest.mark.behavior
    def test_update_unknown_id(self, tmp_path):
        with pytest.raises(ReportNotFoundError):
            JsonReportStore(tmp_path).update_fields("rpt-missing", {"grade": "1"})

    @pytest.mark.behavior
    def test_no_temp_files_left(self, tmp_path):
        store = JsonReportStore(tmp_path)
        store.put(sample_report(EYP_REPORT))
        store.update_fields("rpt-eyp-001", {"grade": "3D"})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["rpt-eyp-001.json"]
