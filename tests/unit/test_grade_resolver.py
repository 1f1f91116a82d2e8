"""
Agent 01: Report Ingestor — Grade Resolver Tests
Rule cascade, canonical labels and grade numbers.
"""

from __future__ import annotations

import pytest

from progress_agents.tools.grade_resolver import (
    GRADE_RULES,
    GradeResolverTool,
    canonicalize_grade_token,
    grade_to_number,
    resolve_grade,
    resolve_grade_detail,
)


# ---------------------------------------------------------------------------
# Rule 1: curriculum stage
# ---------------------------------------------------------------------------

class TestCurriculumStage:

    @pytest.mark.schema
    @pytest.mark.parametrize("text,expected", [
        ("EYP 3D Progress Report", "3D"),
        ("eyp 3d progress report", "3D"),
        ("PYP 5 Term 2", "5"),
        ("Diploma Programme DP1", "1"),
        ("MYP 03 report", "3"),
    ])
    def test_stage_token_number(self, text, expected):
        assert resolve_grade(text) == expected

    @pytest.mark.schema
    def test_stage_reported(self):
        result = resolve_grade_detail("Sunrise School, pyp 4 report")
        assert result.rule == "curriculum_stage"
        assert result.stage == "PYP"
        assert result.matched_text == "pyp 4"

    @pytest.mark.behavior
    @pytest.mark.parametrize("text", ["Kindergarten (EYP 2)", "3rd Grade class, PYP 2"])
    def test_stage_beats_ordinal_and_named(self, text):
        result = resolve_grade_detail(text)
        assert result.grade == "2"
        assert result.rule == "curriculum_stage"


# ---------------------------------------------------------------------------
# Rule 2: explicit label
# ---------------------------------------------------------------------------

class TestExplicitLabel:

    @pytest.mark.schema
    @pytest.mark.parametrize("text,expected", [
        ("Grade: 5", "5"),
        ("GRADE 5", "5"),
        ("Class 3B", "3B"),
        ("Class: 3b", "3B"),
        ("Grade: 05", "5"),
        ("Grade: 4th", "4"),
        ("Class: Pre-K", "Pre-K"),
    ])
    def test_labelled_grade(self, text, expected):
        result = resolve_grade_detail(text)
        assert result.grade == expected
        assert result.rule == "explicit_label"

    @pytest.mark.behavior
    def test_grade_level_alone_is_unresolved(self):
        assert resolve_grade("grade level") is None

    @pytest.mark.behavior
    def test_grade_level_does_not_hide_later_label(self):
        assert resolve_grade("Grade level: see below. Grade: 4") == "4"

    @pytest.mark.behavior
    def test_effort_grade_is_not_a_grade(self):
        assert resolve_grade("Effort grade: 3") is None


# ---------------------------------------------------------------------------
# Rule 3: ordinal / named level
# ---------------------------------------------------------------------------

class TestOrdinalOrNamed:

    @pytest.mark.schema
    @pytest.mark.parametrize("text", ["3rd Grade", "3rd grade report", "3RD GRADE Report"])
    def test_ordinal_grade(self, text):
        result = resolve_grade_detail(text)
        assert result.grade == "3"
        assert result.rule == "ordinal_or_named"

    @pytest.mark.schema
    @pytest.mark.parametrize("text", [
        "Pre-K", "pre-k", "PRE-K", "PreK", "prek", "Pre K", "pre-kindergarten", "Pre-Kindergarten",
    ])
    def test_pre_k_spellings(self, text):
        assert resolve_grade(f"Report for {text} students") == "Pre-K"

    @pytest.mark.schema
    @pytest.mark.parametrize("text,expected", [
        ("Kindergarten report", "Kindergarten"),
        ("NURSERY progress", "Nursery"),
        ("12th grade", "12"),
    ])
    def test_named_levels(self, text, expected):
        assert resolve_grade(text) == expected


# ---------------------------------------------------------------------------
# Rule 4: bare number
# ---------------------------------------------------------------------------

class TestBareNumber:

    @pytest.mark.schema
    @pytest.mark.parametrize("text", ["Report for grade#4 students", "grade4 report", "grade # 4"])
    def test_bare_number(self, text):
        result = resolve_grade_detail(text)
        assert result.grade == "4"
        assert result.rule == "bare_number"


# ---------------------------------------------------------------------------
# Cascade properties
# ---------------------------------------------------------------------------

class TestCascade:

    @pytest.mark.schema
    def test_rule_order(self):
        assert [r.name for r in GRADE_RULES] == [
            "curriculum_stage", "explicit_label", "ordinal_or_named", "bare_number",
        ]

    @pytest.mark.behavior
    @pytest.mark.parametrize("text", [None, "", "No grade information here."])
    def test_unresolved(self, text):
        result = resolve_grade_detail(text)
        assert result.grade is None
        assert result.resolved is False
        assert result.rule is None

    @pytest.mark.behavior
    def test_deterministic(self):
        text = "EYP 3D report. Grade: 2"
        assert resolve_grade_detail(text) == resolve_grade_detail(text)


class TestCanonicalizeToken:

    @pytest.mark.schema
    @pytest.mark.parametrize("token,expected", [
        ("3d", "3D"), ("07", "7"), ("4th", "4"), ("kindergarten", "Kindergarten"),
        ("level", None), ("", None), ("Report", None), ("averyverylongtoken", None),
    ])
    def test_tokens(self, token, expected):
        assert canonicalize_grade_token(token) == expected


class TestGradeToNumber:

    @pytest.mark.schema
    @pytest.mark.parametrize("grade,expected", [
        ("Pre-K", 0), ("Kindergarten", 0), ("Nursery", 0),
        ("3D", 3), ("10", 10), (None, 3),
    ])
    def test_numbers(self, grade, expected):
        assert grade_to_number(grade) == expected


class TestGradeResolverTool:

    @pytest.mark.schema
    def test_tool_reports_rule(self):
        out = GradeResolverTool()._run("EYP 3D Progress Report")
        assert "3D" in out
        assert "curriculum_stage" in out

    @pytest.mark.schema
    def test_tool_unresolved(self):
        assert "unresolved" in GradeResolverTool()._run("grade level")
