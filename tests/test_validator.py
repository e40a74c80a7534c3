"""Tests for the two-stage expense validator."""

from decimal import Decimal

import pytest

from splitter.config import AppSettings
from splitter.models.group import ExpenseDraft, Participant
from splitter.validation import ExpenseValidator


@pytest.fixture
def validator():
    return ExpenseValidator(AppSettings(
        supported_currencies="PLN,EUR,USD,GBP,CHF",
        max_expense_amount=10000.0,
    ))


@pytest.fixture
def roster():
    return [
        Participant(id="a", name="Ala"),
        Participant(id="b", name="Bartek"),
        Participant(id="c", name="Celina"),
    ]


def draft(**overrides) -> ExpenseDraft:
    data = {
        "name": "Dinner",
        "amount": "120.00",
        "currency": "PLN",
        "paid_by": "a",
        "participants": ["a", "b", "c"],
    }
    data.update(overrides)
    return ExpenseDraft(**data)


def issue_types(result) -> set[tuple[str, str]]:
    return {(i.field, i.issue_type) for i in result.issues}


class TestSchemaStage:

    def test_valid_draft(self, validator, roster):
        result = validator.validate(draft(), roster)
        assert result.is_valid
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "✅ Expense looks good."

    def test_missing_fields_reported_together(self, validator, roster):
        result = validator.validate(
            draft(name="", amount="0", paid_by="", participants=[]),
            roster,
        )
        assert not result.schema_valid
        assert not result.semantic_valid
        assert result.error_count == 4
        assert issue_types(result) == {
            ("name", "missing"),
            ("amount", "invalid_value"),
            ("paid_by", "missing"),
            ("participants", "missing"),
        }

    def test_negative_amount(self, validator, roster):
        result = validator.validate(draft(amount="-5"), roster)
        assert ("amount", "invalid_value") in issue_types(result)

    def test_unsupported_currency(self, validator, roster):
        result = validator.validate(draft(currency="btc"), roster)
        assert not result.is_valid
        assert ("currency", "unsupported") in issue_types(result)

    def test_name_too_long(self, roster):
        validator = ExpenseValidator(AppSettings(max_name_length=5))
        result = validator.validate(draft(name="Very long name"), roster)
        assert ("name", "too_long") in issue_types(result)

    def test_semantic_stage_skipped_on_schema_errors(self, validator, roster):
        result = validator.validate(draft(amount="0", paid_by="ghost"), roster)
        assert ("paid_by", "unknown_participant") not in issue_types(result)


class TestSemanticStage:

    def test_unknown_payer(self, validator, roster):
        result = validator.validate(draft(paid_by="ghost"), roster)
        assert result.schema_valid
        assert not result.semantic_valid
        assert ("paid_by", "unknown_participant") in issue_types(result)

    def test_unknown_beneficiary(self, validator, roster):
        result = validator.validate(draft(participants=["a", "ghost"]), roster)
        assert ("participants", "unknown_participant") in issue_types(result)

    def test_duplicate_beneficiary(self, validator, roster):
        result = validator.validate(draft(participants=["a", "b", "b"]), roster)
        assert ("participants", "duplicate") in issue_types(result)
        assert not result.is_valid

    def test_huge_amount_is_only_a_warning(self, validator, roster):
        result = validator.validate(draft(amount="50000"), roster)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "unusually high" in result.warnings[0]

    def test_sub_cent_precision_warning(self, validator, roster):
        result = validator.validate(draft(amount="10.005"), roster)
        assert result.is_valid
        assert ("amount", "precision") in issue_types(result)

    def test_payer_not_sharing_is_info(self, validator, roster):
        result = validator.validate(draft(participants=["b", "c"]), roster)
        assert result.is_valid
        assert result.warnings == []
        assert ("participants", "paid_on_behalf") in issue_types(result)


class TestSummary:

    def test_summary_lists_errors_and_fixes(self, validator, roster):
        result = validator.validate(draft(paid_by="ghost"), roster)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌ Please fix the following:")
        assert "The payer is not a member of this group" in summary
        assert "Add them to the group first" in summary

    def test_summary_lists_warnings(self, validator, roster):
        result = validator.validate(draft(amount=Decimal("20000")), roster)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("⚠️ Please verify the following:")
