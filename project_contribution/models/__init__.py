"""
Models package for the Project Contribution service.

This package contains the domain records, the Pydantic DTOs of the HTTP API
and the project YAML helpers.
"""

# Domain records
from .records import (
    AdmissionDecision,
    CanonicalRecord,
    ChangeRequestRef,
    ClientBucket,
    ContributionMode,
    ContributionRepositories,
    DraftRecord,
    LogoAsset,
    NormalizedContribution,
    RepositoryRef,
    SubmissionResult,
)

# DTOs
from .dtos import (
    ContributionRequest,
    ContributionResponse,
    ErrorResponse,
    LogoInput,
    ProjectInput,
)

# Project YAML helpers
from .project_yaml import (
    dump_project_yaml,
    logo_file_path,
    parse_project_yaml,
    project_file_path,
    validate_project_record,
)

# Define what is exported with 'from project_contribution.models import *'
__all__ = [
    # Records
    "AdmissionDecision",
    "CanonicalRecord",
    "ChangeRequestRef",
    "ClientBucket",
    "ContributionMode",
    "ContributionRepositories",
    "DraftRecord",
    "LogoAsset",
    "NormalizedContribution",
    "RepositoryRef",
    "SubmissionResult",
    # DTOs
    "ContributionRequest",
    "ContributionResponse",
    "ErrorResponse",
    "LogoInput",
    "ProjectInput",
    # YAML
    "dump_project_yaml",
    "logo_file_path",
    "parse_project_yaml",
    "project_file_path",
    "validate_project_record",
]
