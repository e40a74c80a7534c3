"""
Two-Stage Expense Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Value ranges (amount > 0)
- Supported currency

STAGE 2 - SEMANTIC VALIDATION:
- Payer and beneficiaries belong to the group
- No beneficiary listed twice
- Absurd amount detection

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the form.

This is the only place user input is policed. The settlement engine
accepts whatever storage hands it.
"""

from decimal import Decimal
from typing import Iterable, Optional

from splitter.config import AppSettings, get_settings
from splitter.models.group import (
    ExpenseDraft,
    Participant,
    ValidationIssue,
    ValidationResult,
)


class ExpenseValidator:
    """
    Validates expense drafts against the group roster.

    Stage 1: Schema validation (draft only)
    Stage 2: Semantic validation (needs the roster)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Expense name is required",
                severity="error",
                suggested_fix="Describe what the expense was for",
            ))
        elif len(draft.name) > self._settings.max_name_length:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Expense name is longer than {self._settings.max_name_length} characters",
                severity="error",
            ))

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        supported = self._settings.supported_currencies_list
        if draft.currency not in supported:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="unsupported",
                message=f"Currency {draft.currency or '(none)'} is not supported",
                severity="error",
                suggested_fix=f"Use one of: {', '.join(supported)}",
            ))

        if not draft.paid_by:
            issues.append(ValidationIssue(
                field="paid_by",
                issue_type="missing",
                message="Select who paid",
                severity="error",
            ))

        if not draft.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="missing",
                message="Select at least one person sharing the expense",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: ExpenseDraft,
        participants: list[Participant],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        roster = {p.id for p in participants}

        if draft.paid_by not in roster:
            issues.append(ValidationIssue(
                field="paid_by",
                issue_type="unknown_participant",
                message="The payer is not a member of this group",
                severity="error",
                suggested_fix="Add them to the group first",
            ))

        unknown = [pid for pid in draft.participants if pid not in roster]
        if unknown:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="unknown_participant",
                message=f"{len(unknown)} selected participant(s) are not members of this group",
                severity="error",
                suggested_fix="Add them to the group first",
            ))

        if len(set(draft.participants)) != len(draft.participants):
            issues.append(ValidationIssue(
                field="participants",
                issue_type="duplicate",
                message="A participant is selected more than once",
                severity="error",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if draft.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.amount.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="precision",
                message="Amount has more than two decimal places",
                severity="warning",
                suggested_fix="Round the amount to whole cents",
            ))

        if draft.paid_by in roster and draft.paid_by not in draft.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="paid_on_behalf",
                message="The payer is not sharing this expense",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        draft: ExpenseDraft,
        participants: Iterable[Participant],
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The expense as entered by the user
            participants: The group roster

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft, list(participants))
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary of validation results to show next to the expense form."""
        if result.is_valid and not result.warnings:
            return "✅ Expense looks good."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
