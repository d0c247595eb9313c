"""Analyzer output: what Gemini read back from a certificate."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class UserSuppliedMetadata(BaseModel):
    """Claims typed in by the uploader. Used for cross-checking only."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    issuer: str = ""
    issue_date: str | None = Field(None, validation_alias=AliasChoices("issue_date", "issueDate"))
    credential_id: str | None = Field(None, validation_alias=AliasChoices("credential_id", "credentialId"))


class ExtractedInfo(BaseModel):
    """Fields found on the document. Any of them may be missing."""
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    issuer: str | None = None
    issue_date: str | None = Field(None, validation_alias=AliasChoices("issue_date", "issueDate"))
    credential_id: str | None = Field(None, validation_alias=AliasChoices("credential_id", "credentialId"))

    @field_validator("title", "issuer", "issue_date", "credential_id", mode="before")
    @classmethod
    def _normalize(cls, value):
        return _blank_to_none(value)


class ValidationResult(BaseModel):
    """Field-level agreement between the user's claims and the document."""
    matches: list[str] = []
    discrepancies: list[str] = []

    @field_validator("matches", "discrepancies", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value


class AnalysisResult(BaseModel):
    """Structured output of the Certificate Analyzer.

    Accepts both the snake_case keys the prompt asks for and the camelCase
    variants the model sometimes answers with.
    """
    model_config = ConfigDict(populate_by_name=True)

    extracted_info: ExtractedInfo = Field(
        validation_alias=AliasChoices("extracted_info", "extractedInfo"),
    )
    validation: ValidationResult
    suggested_skills: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("suggested_skills", "suggestedSkills"),
    )
    category: str = ""

    @field_validator("suggested_skills", mode="before")
    @classmethod
    def _skill_names(cls, value):
        if value is None:
            return []
        names = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("name")
            if isinstance(item, str) and item.strip():
                names.append(item.strip())
        return names

    @field_validator("category", mode="before")
    @classmethod
    def _category_default(cls, value):
        return value or ""
