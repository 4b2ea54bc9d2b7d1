"""Shared fixtures for the Project Contribution service tests."""

import pytest

from project_contribution.models.records import (
    CanonicalRecord,
    ChangeRequestRef,
    ContributionRepositories,
    RepositoryRef,
)


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingUpstream:
    """Upstream source returning a fixed record and counting calls."""

    def __init__(self, record=None, error=None):
        self.record = record
        self.error = error
        self.calls = []

    async def fetch_canonical(self, identifier):
        self.calls.append(identifier)
        if self.error is not None:
            raise self.error
        return self.record


class RecordingSubmitter:
    """Change-request submitter that records submissions and returns fake refs."""

    def __init__(self, record_error=None, asset_error=None):
        self.record_error = record_error
        self.asset_error = asset_error
        self.records = []
        self.assets = []

    async def submit_record(self, submission):
        self.records.append(submission)
        if self.record_error is not None:
            raise self.record_error
        name = submission.existing_name or submission.record.name
        return ChangeRequestRef(
            file_path=f"data/projects/{name[0]}/{name}.yaml",
            branch_name=f"project-contribution/{submission.mode.value}-project-{name}-20260101000000",
            pull_request_url="https://github.com/opensource-observer/oss-directory/pull/1",
        )

    async def submit_asset(self, submission):
        self.assets.append(submission)
        if self.asset_error is not None:
            raise self.asset_error
        asset = submission.asset
        return ChangeRequestRef(
            file_path=f"logos/{asset.project_name}.png",
            branch_name=f"project-contribution/{asset.mode.value}-logo-{asset.project_name}-20260101000000",
            pull_request_url="https://github.com/growthepie/gtp-dna/pull/2",
        )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def repositories():
    return ContributionRepositories(
        projects=RepositoryRef(owner="opensource-observer", repo="oss-directory", base_branch="main"),
        logos=RepositoryRef(owner="growthepie", repo="gtp-dna", base_branch="main"),
    )


@pytest.fixture
def existing_acme_record():
    """Upstream record of the ``acme`` project as stored in the directory."""
    return CanonicalRecord.from_mapping({
        "version": 7,
        "name": "acme",
        "display_name": "Acme",
        "description": "Old description",
        "websites": [{"url": "https://acme.example"}],
        "social": {"twitter": [{"url": "https://x.com/acme"}]},
        "github": [{"url": "https://github.com/acme"}],
        "npm": [{"url": "https://www.npmjs.com/package/acme"}],
    })


@pytest.fixture
def upstream(existing_acme_record):
    return RecordingUpstream(record=existing_acme_record)


@pytest.fixture
def submitter():
    return RecordingSubmitter()
