"""
Domain records for project contributions.

These are request-scoped value objects passed between the normalizer, the
reconciliation engine and the submission orchestrator. ``ClientBucket`` is the
only record that outlives a request (it is owned by the admission controller).
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

UrlList = List[Dict[str, Any]]
SocialMap = Dict[str, UrlList]

# Top-level keys of a project YAML file, in the order they are written out.
KNOWN_FIELDS = (
    "version",
    "name",
    "display_name",
    "description",
    "websites",
    "social",
    "github",
)
WELL_KNOWN_EXTENSION_FIELDS = (
    "npm",
    "crates",
    "pypi",
    "go",
    "open_collective",
    "blockchain",
    "defillama",
)
SOCIAL_PLATFORM_ORDER = (
    "twitter",
    "telegram",
    "discord",
    "farcaster",
    "medium",
    "mirror",
)


class ContributionMode(str, Enum):
    """Whether a contribution creates a new project or edits an existing one."""

    ADD = "add"
    EDIT = "edit"


@dataclass
class ClientBucket:
    """Fixed-window request counter for one client."""

    count: int
    window_reset_at: float


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check."""

    allowed: bool
    retry_after_seconds: int = 0


@dataclass(frozen=True)
class RepositoryRef:
    """A GitHub repository and the branch change requests are opened against."""

    owner: str
    repo: str
    base_branch: str = "main"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ContributionRepositories:
    """Target repositories per artifact kind."""

    projects: RepositoryRef
    logos: RepositoryRef


@dataclass
class DraftRecord:
    """
    Normalized, trusted shape of one submission.

    Every field is optional so that an empty draft can be represented. A field
    left as ``None`` is "not supplied" and never overwrites upstream data.
    ``social == {}`` is distinct from ``social is None``: the former says the
    draft touches social links, the latter that it does not.
    """

    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    websites: Optional[UrlList] = None
    github: Optional[UrlList] = None
    social: Optional[SocialMap] = None
    version: Optional[int] = None

    def to_mapping(self) -> Dict[str, Any]:
        """Return only the fields this draft explicitly sets."""
        mapping: Dict[str, Any] = {}
        for key in KNOWN_FIELDS:
            value = getattr(self, key)
            if value is not None:
                mapping[key] = copy.deepcopy(value)
        return mapping


@dataclass
class CanonicalRecord:
    """
    Authoritative project record: typed known fields plus an open extension map.

    ``extensions`` holds every top-level key this service does not model
    (``npm``, ``blockchain``, ``defillama``, ...) and is carried through
    reconciliation untouched. ``null_fields`` remembers known keys that were
    present with an explicit null value, so they are written back as such.
    """

    version: Optional[Any] = None
    name: Optional[Any] = None
    display_name: Optional[Any] = None
    description: Optional[Any] = None
    websites: Optional[Any] = None
    social: Optional[Any] = None
    github: Optional[Any] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    null_fields: Set[str] = field(default_factory=set)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "CanonicalRecord":
        known = {key: copy.deepcopy(data[key]) for key in KNOWN_FIELDS if key in data}
        null_fields = {key for key, value in known.items() if value is None}
        extensions = {
            key: copy.deepcopy(value) for key, value in data.items() if key not in KNOWN_FIELDS
        }
        return cls(extensions=extensions, null_fields=null_fields, **known)

    def to_mapping(self) -> Dict[str, Any]:
        """
        Return the record as a plain mapping in canonical field order.

        Known fields come first in their fixed order, then well-known
        extension fields, then any remaining keys alphabetically. A known
        field that is ``None`` is omitted unless it was stored as null.
        """
        mapping: Dict[str, Any] = {}
        for key in KNOWN_FIELDS:
            value = getattr(self, key)
            if value is not None or key in self.null_fields:
                mapping[key] = copy.deepcopy(value)
        for key in WELL_KNOWN_EXTENSION_FIELDS:
            if key in self.extensions:
                mapping[key] = copy.deepcopy(self.extensions[key])
        for key in sorted(self.extensions):
            if key not in mapping:
                mapping[key] = copy.deepcopy(self.extensions[key])
        return mapping


@dataclass(frozen=True)
class LogoAsset:
    """Decoded logo upload. Lives only for the duration of one request."""

    content: bytes
    mode: ContributionMode
    project_name: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class NormalizedContribution:
    """Output of the draft normalizer."""

    mode: ContributionMode
    draft: DraftRecord
    logo: Optional[LogoAsset] = None


@dataclass(frozen=True)
class ChangeRequestRef:
    """Where a proposed change landed: file path, branch and pull request URL."""

    file_path: str
    branch_name: str
    pull_request_url: str


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one orchestrated contribution."""

    record: ChangeRequestRef
    asset: Optional[ChangeRequestRef] = None
