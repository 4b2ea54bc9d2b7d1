"""
Pydantic Data Transfer Objects (DTOs) for the Project Contribution service.

Request models are deliberately permissive: the body comes from a public form,
so every string field is trimmed and anything that is not a non-empty string
is treated as absent instead of failing validation.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from project_contribution.models.records import ChangeRequestRef, SubmissionResult


def to_non_empty_string(value: Any) -> Optional[str]:
    """Trim a string value; non-strings and blank strings become ``None``."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


class ProjectInput(BaseModel):
    """Project fields as submitted by the contribution form."""

    owner_project: Optional[str] = Field(None, description="Project slug, e.g. 'acme'.")
    display_name: Optional[str] = Field(None, description="Human readable project name.")
    description: Optional[str] = None
    website: Optional[str] = Field(None, description="Single website URL.")
    main_github: Optional[str] = Field(None, description="Main GitHub organization or repository URL.")
    twitter: Optional[str] = None
    telegram: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def trim_strings(cls, v: Any) -> Optional[str]:
        return to_non_empty_string(v)


class LogoInput(BaseModel):
    """Optional logo upload, base64 encoded (a data URL prefix is allowed)."""

    base64: Optional[str] = None
    file_name: Optional[str] = Field(None, alias="fileName")
    mime_type: Optional[str] = Field(None, alias="mimeType")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def trim_strings(cls, v: Any) -> Optional[str]:
        return to_non_empty_string(v)


class ContributionRequest(BaseModel):
    """Body of ``POST /api/labels/project-contribution``."""

    mode: Optional[Any] = Field(None, description="'add' (default) or 'edit'.")
    project: Optional[ProjectInput] = None
    logo: Optional[LogoInput] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("project", "logo", mode="before")
    @classmethod
    def drop_non_objects(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None


class ContributionResponse(BaseModel):
    """Successful contribution: where the YAML and (optional) logo changes landed."""

    yaml_pull_request_url: str = Field(..., alias="yamlPullRequestUrl")
    logo_pull_request_url: Optional[str] = Field(None, alias="logoPullRequestUrl")
    yaml_file_path: str = Field(..., alias="yamlFilePath")
    logo_file_path: Optional[str] = Field(None, alias="logoFilePath")
    yaml_branch_name: str = Field(..., alias="yamlBranchName")
    logo_branch_name: Optional[str] = Field(None, alias="logoBranchName")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_result(cls, result: SubmissionResult) -> "ContributionResponse":
        asset = result.asset
        return cls(
            yaml_pull_request_url=result.record.pull_request_url,
            logo_pull_request_url=asset.pull_request_url if asset else None,
            yaml_file_path=result.record.file_path,
            logo_file_path=asset.file_path if asset else None,
            yaml_branch_name=result.record.branch_name,
            logo_branch_name=asset.branch_name if asset else None,
        )


class ErrorResponse(BaseModel):
    """
    Error body. The ``yaml*`` fields are only set when the project YAML pull
    request was created but the logo one failed.
    """

    error: str
    yaml_pull_request_url: Optional[str] = Field(None, alias="yamlPullRequestUrl")
    yaml_file_path: Optional[str] = Field(None, alias="yamlFilePath")
    yaml_branch_name: Optional[str] = Field(None, alias="yamlBranchName")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def for_partial_record(cls, error: str, record: ChangeRequestRef) -> "ErrorResponse":
        return cls(
            error=error,
            yaml_pull_request_url=record.pull_request_url,
            yaml_file_path=record.file_path,
            yaml_branch_name=record.branch_name,
        )
