from __future__ import annotations

from django import forms
import json

from calsynth.layout import sanitise_repo_name
from calsynth.validation import (
    ValidationError,
    normalize_calendar,
    parse_contributions,
    resolve_timezone,
    validate_identity,
)


class GenerateRepoForm(forms.Form):
    """
    Canonical UI form for a generation request.

    This form:
    - Mirrors the session YAML contract exactly
    - Validates UI-level constraints with the same rules as the CLI
    - Emits a pure Python structure (no side effects)
    """

    # --------------------------------------------------
    # Identity
    # --------------------------------------------------

    github_username = forms.CharField(
        required=False,
        label="Author name",
        help_text="Defaults to calsynth",
    )

    github_email = forms.CharField(
        required=False,
        label="Author email",
        help_text="Defaults to <name>@users.noreply.github.com",
    )

    # --------------------------------------------------
    # Repository
    # --------------------------------------------------

    repo_name = forms.CharField(
        required=False,
        label="Repository name",
        help_text="Defaults to <name>-<year>",
    )

    year = forms.IntegerField(required=False, min_value=1)

    base_dir = forms.CharField(
        required=False,
        label="Base directory",
        widget=forms.TextInput(attrs={"placeholder": "/tmp/calsynth"}),
    )

    timezone = forms.CharField(
        required=False,
        initial="UTC",
    )

    # --------------------------------------------------
    # Calendar
    # --------------------------------------------------

    contributions = forms.CharField(
        label="Contributions",
        help_text='JSON list of {"date": "YYYY-MM-DD", "count": n}',
        widget=forms.Textarea(attrs={"rows": 12}),
    )

    # --------------------------------------------------
    # Field validation
    # --------------------------------------------------

    def clean_contributions(self):
        value = self.cleaned_data["contributions"]

        try:
            raw = json.loads(value)
        except json.JSONDecodeError as e:
            raise forms.ValidationError(f"Contributions are not valid JSON: {e.msg}")

        try:
            return normalize_calendar(parse_contributions(raw))
        except ValidationError as e:
            raise forms.ValidationError(str(e))

    def clean_timezone(self):
        value = (self.cleaned_data.get("timezone") or "").strip() or "UTC"

        try:
            resolve_timezone("timezone", value)
        except ValidationError as e:
            raise forms.ValidationError(str(e))

        return value

    def clean_repo_name(self):
        value = (self.cleaned_data.get("repo_name") or "").strip()
        if value and not sanitise_repo_name(value):
            raise forms.ValidationError("Repository name has no usable characters")
        return value

    def clean(self):
        cleaned = super().clean()

        try:
            validate_identity(cleaned.get("github_username"), cleaned.get("github_email"))
        except ValidationError as e:
            field = "github_username" if e.path == "identity.name" else "github_email"
            self.add_error(field, str(e))

        return cleaned
