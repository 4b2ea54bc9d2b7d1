"""
Core components for the Project Contribution Service.
"""

from .admission import AdmissionController
from .collaborators import AssetSubmission, ChangeRequestSubmitter, RecordSubmission, UpstreamSource
from .errors import (
    ConfigurationError,
    ContributionError,
    FetchError,
    PartialSubmissionError,
    PayloadTooLargeError,
    RateLimitError,
    SubmissionError,
    UnexpectedError,
    ValidationError,
)
from .normalizer import DraftNormalizer
from .reconciler import build_record, canonicalize, reconcile

# The orchestrator and upstream fetcher depend on the GitHub integration and
# are imported from their modules directly.
__all__ = [
    "AdmissionController",
    "AssetSubmission",
    "ChangeRequestSubmitter",
    "RecordSubmission",
    "UpstreamSource",
    "ConfigurationError",
    "ContributionError",
    "FetchError",
    "PartialSubmissionError",
    "PayloadTooLargeError",
    "RateLimitError",
    "SubmissionError",
    "UnexpectedError",
    "ValidationError",
    "DraftNormalizer",
    "build_record",
    "canonicalize",
    "reconcile",
]
