"""Tests for jobfusion/extraction/validators.py - candidate validation.

These tests verify that:
- Garbage values (UI chrome, placeholders, markup) are rejected with a reason
- Length bounds are enforced per field
- Job descriptions lose leading cookie notices and navigation lines
- Surviving values are cleaned and sanitized

Run after changes to: jobfusion/extraction/validators.py
"""

import pytest

from jobfusion.extraction.validators import (
    RejectionReason,
    Validator,
    clean_job_description,
    clean_text,
    has_excessive_repetition,
    sanitize_text,
)
from jobfusion.models import Candidate, Field


@pytest.fixture
def validator():
    return Validator()


class TestValidate:
    """Tests for Validator.validate."""

    def test_accepts_plain_job_title(self, validator):
        """A normal title should be valid and returned cleaned."""
        result = validator.validate(Field.POSITION, "  Senior   Engineer ")

        assert result.valid
        assert result.cleaned == "Senior Engineer"
        assert result.reason is None

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_rejects_empty(self, validator, value):
        """Empty and blank values are rejected as empty."""
        result = validator.validate(Field.COMPANY, value)

        assert not result.valid
        assert result.reason == RejectionReason.EMPTY

    @pytest.mark.parametrize("value", ["Apply", "Submit", "Login", "View all jobs", "Loading", "[Job Title]", "Careers"])
    def test_rejects_ui_chrome_as_position(self, validator, value):
        """Buttons, navigation and placeholders are not job titles."""
        result = validator.validate(Field.POSITION, value)

        assert not result.valid
        assert result.reason == RejectionReason.GARBAGE_PATTERN

    def test_rejects_cookie_text_as_position(self, validator):
        result = validator.validate(Field.POSITION, "We value your privacy")

        assert result.reason == RejectionReason.GARBAGE_PATTERN

    @pytest.mark.parametrize("value", ["Confidential", "n/a", "Company", "https://acme.example"])
    def test_rejects_placeholder_companies(self, validator, value):
        result = validator.validate(Field.COMPANY, value)

        assert result.reason == RejectionReason.GARBAGE_PATTERN

    @pytest.mark.parametrize("value", ["Unknown", "Anywhere", "Loading"])
    def test_rejects_placeholder_locations(self, validator, value):
        result = validator.validate(Field.LOCATION, value)

        assert result.reason == RejectionReason.GARBAGE_PATTERN

    def test_rejects_too_short(self, validator):
        """Values below the field minimum are rejected as too short."""
        assert validator.validate(Field.POSITION, "QA").reason == RejectionReason.TOO_SHORT
        assert validator.validate(Field.COMPANY, "A").reason == RejectionReason.TOO_SHORT

    def test_rejects_too_long(self, validator):
        result = validator.validate(Field.POSITION, "Engineer " + "x" * 200)

        assert result.reason == RejectionReason.TOO_LONG

    def test_rejects_markup(self, validator):
        """HTML and script signatures are rejected for short fields."""
        assert validator.validate(Field.LOCATION, "<b>Berlin</b>").reason == RejectionReason.HTML_CONTENT
        assert validator.validate(Field.POSITION, "Engineer javascript:void(0)").reason == RejectionReason.HTML_CONTENT

    def test_rejects_repeated_characters(self, validator):
        result = validator.validate(Field.POSITION, "Engineer!!!!!")

        assert result.reason == RejectionReason.REPETITION

    def test_rejects_repeated_words(self, validator):
        result = validator.validate(Field.COMPANY, "Acme Acme Acme Acme Corp")

        assert result.reason == RejectionReason.REPETITION

    def test_salary_needs_currency_or_number(self, validator):
        """Salary text without a currency symbol or digit is rejected."""
        assert validator.validate(Field.SALARY, "Competitive").reason == RejectionReason.NO_CURRENCY_OR_NUMBER
        assert validator.validate(Field.SALARY, "€50.000 per year").valid
        assert validator.validate(Field.SALARY, "90k").valid

    def test_accepts_field_name_string(self, validator):
        """Wire names are accepted in place of Field members."""
        assert validator.validate("jobDescription", "x" * 60).valid


class TestJobDescription:
    """Tests for job description cleaning."""

    def test_strips_leading_notices_and_navigation(self, validator, long_description):
        """Cookie notices and navigation lines before the text are removed."""
        raw = (
            "Cookie settings\n"
            "We use cookies to improve your experience.\n"
            "Home > Jobs > Engineering\n"
            f"{long_description}"
        )

        result = validator.validate(Field.JOB_DESCRIPTION, raw)

        assert result.valid
        assert result.cleaned.startswith("About the role")
        assert "cookies" not in result.cleaned

    def test_length_rechecked_after_stripping(self, validator):
        """A description that is mostly a cookie notice becomes too short."""
        raw = "This website uses cookies to give you the best experience possible.\nApply now"

        result = validator.validate(Field.JOB_DESCRIPTION, raw)

        assert result.reason == RejectionReason.TOO_SHORT

    def test_keeps_text_without_notices(self, long_description):
        assert clean_job_description(long_description) == long_description

    def test_keeps_paragraphs(self, validator, long_description):
        """Line structure survives; only inline whitespace and blank runs shrink."""
        raw = (
            "We use cookies on this site.\n"
            f"{long_description}\n\n\n\n"
            "Benefits:   remote   work\r\n"
            "and a  yearly bonus"
        )
        expected = f"{long_description}\n\nBenefits: remote work\nand a yearly bonus"

        assert clean_job_description(raw) == expected
        assert validator.validate(Field.JOB_DESCRIPTION, raw).cleaned == expected


class TestFilterValidCandidates:
    """Tests for Validator.filter_valid_candidates."""

    def test_drops_invalid_and_cleans_valid(self, validator):
        candidates = [
            Candidate("Apply", "css-selectors", 0.7),
            Candidate("  Data   Engineer ", "meta-tags", 0.8),
            Candidate("<b>Boss</b>", "aria-labels", 0.85),
        ]

        valid = validator.filter_valid_candidates(candidates, Field.POSITION)

        assert [c.value for c in valid] == ["Data Engineer"]
        assert valid[0].source == "meta-tags"
        assert valid[0].confidence == 0.8

    def test_does_not_mutate_input(self, validator):
        original = Candidate("  Data Engineer ", "meta-tags", 0.8)

        validator.filter_valid_candidates([original], Field.POSITION)

        assert original.value == "  Data Engineer "

    def test_non_text_value_is_rejected(self, validator):
        candidates = [Candidate(42, "plugin", 0.9), Candidate("Data Engineer", "meta-tags", 0.8)]

        valid = validator.filter_valid_candidates(candidates, Field.POSITION)

        assert [c.value for c in valid] == ["Data Engineer"]


class TestTextHelpers:
    """Tests for clean_text, sanitize_text and repetition checks."""

    def test_clean_text_removes_zero_width_and_control_chars(self):
        assert clean_text("Senior​ Engineer\x07") == "Senior Engineer"

    def test_clean_text_handles_none(self):
        assert clean_text(None) == ""

    def test_sanitize_escapes_angle_brackets(self):
        assert sanitize_text("<b>Acme</b>") == "&lt;b&gt;Acme&lt;/b&gt;"

    def test_sanitize_strips_script_vectors(self):
        assert sanitize_text("javascript:alert(1)") == "alert(1)"
        assert sanitize_text("onclick=steal()") == "steal()"
        assert sanitize_text("data:text/html") == "text/html"

    def test_sanitize_leaves_plain_text(self):
        assert sanitize_text("Berlin, Germany") == "Berlin, Germany"

    def test_repetition_needs_more_than_three_words(self):
        assert not has_excessive_repetition("go go go")
        assert has_excessive_repetition("go go go go")
