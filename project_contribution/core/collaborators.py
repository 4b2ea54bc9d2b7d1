"""Defines the interfaces of the external collaborators the orchestrator relies on."""

from dataclasses import dataclass
from typing import Optional, Protocol

from project_contribution.models.records import (
    CanonicalRecord,
    ChangeRequestRef,
    ContributionMode,
    LogoAsset,
)


@dataclass(frozen=True)
class RecordSubmission:
    """A project YAML change to propose."""

    mode: ContributionMode
    record: CanonicalRecord
    # Identifier the upstream file is stored under (edit mode only).
    existing_name: Optional[str] = None


@dataclass(frozen=True)
class AssetSubmission:
    """A logo change to propose."""

    asset: LogoAsset


class UpstreamSource(Protocol):
    """Read access to the canonical project records."""

    async def fetch_canonical(self, identifier: str) -> CanonicalRecord:
        """Return the current record for ``identifier`` or raise ``FetchError``."""
        ...


class ChangeRequestSubmitter(Protocol):
    """Turns proposed changes into reviewable change requests."""

    async def submit_record(self, submission: RecordSubmission) -> ChangeRequestRef:
        """Open a change request for a project record or raise ``SubmissionError``."""
        ...

    async def submit_asset(self, submission: AssetSubmission) -> ChangeRequestRef:
        """Open a change request for a logo or raise ``SubmissionError``."""
        ...
