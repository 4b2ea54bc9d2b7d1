import base64
from unittest.mock import AsyncMock, patch

import pytest

from project_contribution.core.errors import (
    ConfigurationError,
    FetchError,
    PartialSubmissionError,
    PayloadTooLargeError,
    SubmissionError,
    ValidationError,
)
from project_contribution.core.normalizer import DraftNormalizer
from project_contribution.core.orchestrator import ContributionOrchestrator, github_orchestrator
from project_contribution.config.settings import Settings
from project_contribution.models.project_yaml import parse_project_yaml, validate_project_record
from project_contribution.models.records import CanonicalRecord, ContributionMode, LogoAsset
from project_contribution.tests.conftest import RecordingSubmitter, RecordingUpstream

LOGO_BASE64 = base64.b64encode(b"logo-bytes").decode("ascii")


@pytest.fixture
def orchestrator(upstream, submitter):
    return ContributionOrchestrator(upstream=upstream, submitter=submitter)


@pytest.mark.asyncio
async def test_add_without_logo(orchestrator, upstream, submitter):
    """Adding a project opens one pull request and never reads upstream."""
    result = await orchestrator.contribute({"project": {"owner_project": "acme", "display_name": "Acme"}})

    assert result.record.file_path == "data/projects/a/acme.yaml"
    assert result.asset is None
    assert upstream.calls == []
    assert len(submitter.records) == 1
    assert submitter.assets == []

    submission = submitter.records[0]
    assert submission.mode == ContributionMode.ADD
    assert submission.existing_name is None
    assert submission.record.to_mapping() == {"version": 7, "name": "acme", "display_name": "Acme"}


@pytest.mark.asyncio
async def test_add_with_logo(orchestrator, submitter):
    body = {
        "project": {"owner_project": "acme", "display_name": "Acme"},
        "logo": {"base64": LOGO_BASE64, "fileName": "acme.png"},
    }

    result = await orchestrator.contribute(body)

    assert result.asset.file_path == "logos/acme.png"
    assert submitter.assets[0].asset.content == b"logo-bytes"


@pytest.mark.asyncio
async def test_edit_reconciles_with_upstream(orchestrator, upstream, submitter):
    body = {
        "mode": "edit",
        "project": {"owner_project": "acme", "display_name": "Acme Corp", "description": "New"},
    }

    await orchestrator.contribute(body)

    assert upstream.calls == ["acme"]
    submission = submitter.records[0]
    assert submission.mode == ContributionMode.EDIT
    assert submission.existing_name == "acme"
    assert submission.record.to_mapping() == {
        "version": 7,
        "name": "acme",
        "display_name": "Acme Corp",
        "description": "New",
        "websites": [{"url": "https://acme.example"}],
        "social": {"twitter": [{"url": "https://x.com/acme"}]},
        "github": [{"url": "https://github.com/acme"}],
        "npm": [{"url": "https://www.npmjs.com/package/acme"}],
    }


@pytest.mark.asyncio
async def test_edit_replaces_website_and_keeps_upstream_version(submitter):
    """Editing only the website keeps the stored name and version."""
    upstream = RecordingUpstream(record=CanonicalRecord.from_mapping({
        "name": "acme",
        "version": 3,
        "display_name": "Acme",
        "websites": [{"url": "https://old.acme.example"}],
    }))
    orchestrator = ContributionOrchestrator(upstream=upstream, submitter=submitter)
    body = {
        "mode": "edit",
        "project": {"owner_project": "acme", "display_name": "Acme", "website": "https://new.acme.example"},
    }

    await orchestrator.contribute(body)

    record = submitter.records[0].record
    assert record.name == "acme"
    assert record.version == 3
    assert record.websites == [{"url": "https://new.acme.example"}]
    assert record.to_mapping() == {
        "version": 3,
        "name": "acme",
        "display_name": "Acme",
        "websites": [{"url": "https://new.acme.example"}],
    }


@pytest.mark.asyncio
async def test_edit_of_versionless_record_uses_schema_version(submitter):
    upstream = RecordingUpstream(record=parse_project_yaml("name: acme\ndisplay_name: Acme\n"))
    orchestrator = ContributionOrchestrator(upstream=upstream, submitter=submitter, schema_version=7)

    await orchestrator.contribute({"mode": "edit", "project": {"owner_project": "acme", "display_name": "Acme"}})

    record = submitter.records[0].record
    assert record.version == 7
    assert validate_project_record(record) == []


@pytest.mark.asyncio
async def test_missing_display_name_makes_no_external_calls(orchestrator, upstream, submitter):
    with pytest.raises(ValidationError):
        await orchestrator.contribute({"mode": "edit", "project": {"owner_project": "acme"}})

    assert upstream.calls == []
    assert submitter.records == []
    assert submitter.assets == []


@pytest.mark.asyncio
async def test_fetch_error_stops_before_submission(submitter):
    upstream = RecordingUpstream(error=FetchError("Could not load existing project YAML", upstream_status=404))
    orchestrator = ContributionOrchestrator(upstream=upstream, submitter=submitter)

    with pytest.raises(FetchError):
        await orchestrator.contribute({"mode": "edit", "project": {"owner_project": "acme", "display_name": "Acme"}})

    assert submitter.records == []


@pytest.mark.asyncio
async def test_record_failure_skips_logo(upstream):
    submitter = RecordingSubmitter(record_error=SubmissionError("Failed to open project YAML pull request: boom"))
    orchestrator = ContributionOrchestrator(upstream=upstream, submitter=submitter)
    body = {"project": {"owner_project": "acme", "display_name": "Acme"}, "logo": {"base64": LOGO_BASE64}}

    with pytest.raises(SubmissionError) as exc_info:
        await orchestrator.contribute(body)

    assert not isinstance(exc_info.value, PartialSubmissionError)
    assert submitter.assets == []


@pytest.mark.asyncio
async def test_logo_failure_reports_partial_success(upstream):
    submitter = RecordingSubmitter(asset_error=SubmissionError("Failed to open logo pull request: boom"))
    orchestrator = ContributionOrchestrator(upstream=upstream, submitter=submitter)
    body = {"project": {"owner_project": "acme", "display_name": "Acme"}, "logo": {"base64": LOGO_BASE64}}

    with pytest.raises(PartialSubmissionError) as exc_info:
        await orchestrator.contribute(body)

    error = exc_info.value
    assert error.record.file_path == "data/projects/a/acme.yaml"
    assert error.record.pull_request_url == "https://github.com/opensource-observer/oss-directory/pull/1"
    assert "Failed to open logo pull request: boom" in error.message
    assert len(submitter.records) == 1


@pytest.mark.asyncio
async def test_submit_checks_preconditions(orchestrator, submitter):
    record = CanonicalRecord.from_mapping({"version": 7, "name": "acme"})

    with pytest.raises(ValidationError):
        await orchestrator.submit(ContributionMode.ADD, record)

    assert submitter.records == []


@pytest.mark.asyncio
async def test_submit_rejects_oversized_asset(upstream, submitter):
    orchestrator = ContributionOrchestrator(
        upstream=upstream, submitter=submitter, normalizer=DraftNormalizer(max_logo_base64_chars=8)
    )
    record = CanonicalRecord.from_mapping({"version": 7, "name": "acme", "display_name": "Acme"})
    asset = LogoAsset(content=b"x" * 7, mode=ContributionMode.ADD, project_name="acme")

    with pytest.raises(PayloadTooLargeError):
        await orchestrator.submit(ContributionMode.ADD, record, asset)

    assert submitter.records == []


@pytest.mark.asyncio
async def test_github_orchestrator_requires_token():
    settings = Settings(_env_file=None, OLI_GITHUB_TOKEN=None, GITHUB_TOKEN=None)

    with patch("project_contribution.core.orchestrator.GitHubClient") as MockClient:
        with pytest.raises(ConfigurationError, match="Missing OLI_GITHUB_TOKEN"):
            async with github_orchestrator(settings):
                pass

    MockClient.assert_not_called()


@pytest.mark.asyncio
async def test_github_orchestrator_wires_repositories():
    settings = Settings(
        _env_file=None,
        GITHUB_TOKEN="ghp_test",
        OLI_PROJECTS_REPO_OWNER="my-org",
        OLI_GITHUB_TARGET_OWNER="bot-org",
        PROJECT_SCHEMA_VERSION=8,
    )

    with patch("project_contribution.core.orchestrator.GitHubClient") as MockClient:
        client = MockClient.return_value
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)

        async with github_orchestrator(settings) as orchestrator:
            assert orchestrator.upstream.repository.owner == "my-org"
            assert orchestrator.upstream.repository.repo == "oss-directory"
            assert orchestrator.submitter.options.target_owner == "bot-org"
            assert orchestrator.schema_version == 8

    assert MockClient.call_args.args[0] == "ghp_test"
    client.__aexit__.assert_awaited_once()
