"""
Submission Orchestrator for the Project Contribution Service.

Coordinates the sequential execution of draft normalization, upstream fetching
and reconciliation (edit mode only), and change-request submission for the
project record and, independently, its logo.
"""
import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from project_contribution.config.settings import Settings
from project_contribution.core.collaborators import (
    AssetSubmission,
    ChangeRequestSubmitter,
    RecordSubmission,
    UpstreamSource,
)
from project_contribution.core.errors import (
    ConfigurationError,
    PartialSubmissionError,
    PayloadTooLargeError,
    ValidationError,
)
from project_contribution.core.normalizer import DraftNormalizer
from project_contribution.core.reconciler import DEFAULT_SCHEMA_VERSION, build_record, reconcile
from project_contribution.core.upstream_fetcher import GitHubUpstreamFetcher
from project_contribution.integrations.change_requests import (
    GitHubChangeRequestSubmitter,
    SubmissionOptions,
)
from project_contribution.integrations.github import GitHubClient
from project_contribution.models.records import (
    CanonicalRecord,
    ContributionMode,
    DraftRecord,
    LogoAsset,
    NormalizedContribution,
    SubmissionResult,
)

logger = logging.getLogger(__name__)


def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


class ContributionOrchestrator:
    """
    Orchestrates one project contribution from raw body to pull requests.
    """

    def __init__(
        self,
        upstream: UpstreamSource,
        submitter: ChangeRequestSubmitter,
        normalizer: Optional[DraftNormalizer] = None,
        schema_version: int = DEFAULT_SCHEMA_VERSION,
    ):
        self.upstream = upstream
        self.submitter = submitter
        self.normalizer = normalizer or DraftNormalizer()
        self.schema_version = schema_version

    async def contribute(self, raw_body: object) -> SubmissionResult:
        """
        Run the whole flow for a decoded request body.

        Raises:
            ContributionError: Any failure, see ``core.errors``
        """
        contribution = self.normalizer.normalize(raw_body)
        return await self.process(contribution)

    async def process(self, contribution: NormalizedContribution) -> SubmissionResult:
        """Build the final record for a normalized contribution and submit it."""
        logger.info(
            f"Processing {contribution.mode.value} contribution for {contribution.draft.name}"
        )
        record = await self.prepare_record(contribution.mode, contribution.draft)
        existing_name = contribution.draft.name if contribution.mode == ContributionMode.EDIT else None
        return await self.submit(contribution.mode, record, contribution.logo, existing_name=existing_name)

    async def prepare_record(self, mode: ContributionMode, draft: DraftRecord) -> CanonicalRecord:
        """
        Return the record to propose.

        Add mode builds it from the draft alone. Edit mode fetches the current
        upstream record and reconciles the draft into it; the schema version
        only applies when the upstream record has no integer version.
        """
        if mode == ContributionMode.ADD:
            return build_record(draft, self.schema_version)

        if not draft.name:
            raise ValidationError("owner_project and display_name are required.")
        existing = await self.upstream.fetch_canonical(draft.name)
        if draft.version is None:
            draft = dataclasses.replace(draft, version=self.schema_version)
        return reconcile(existing, draft)

    async def submit(
        self,
        mode: ContributionMode,
        record: CanonicalRecord,
        asset: Optional[LogoAsset] = None,
        existing_name: Optional[str] = None,
    ) -> SubmissionResult:
        """
        Dispatch the record change request and, if present, the logo one.

        The logo is submitted only after the record succeeded. A logo failure
        does not undo the record pull request; it raises
        ``PartialSubmissionError`` carrying the record reference.

        Raises:
            ValidationError: If preconditions do not hold (nothing is submitted)
            SubmissionError: If the record submission failed
            PartialSubmissionError: If the record succeeded but the logo failed
        """
        if not _has_text(record.name) or not _has_text(record.display_name):
            raise ValidationError("owner_project and display_name are required.")
        max_logo_bytes = self.normalizer.max_logo_base64_chars * 3 // 4
        if asset is not None and len(asset.content) > max_logo_bytes:
            raise PayloadTooLargeError("Logo file is too large. Maximum size is 500 KB.")

        record_ref = await self.submitter.submit_record(
            RecordSubmission(
                mode=mode,
                record=record,
                existing_name=existing_name if mode == ContributionMode.EDIT else None,
            )
        )
        logger.info(f"Project YAML pull request created: {record_ref.pull_request_url}")

        if asset is None:
            return SubmissionResult(record=record_ref)

        try:
            asset_ref = await self.submitter.submit_asset(AssetSubmission(asset=asset))
        except Exception as e:
            logger.error(
                f"Logo submission failed after project YAML pull request "
                f"{record_ref.pull_request_url} was created: {e}",
                exc_info=True,
            )
            raise PartialSubmissionError(
                f"Project YAML pull request was created ({record_ref.pull_request_url}) "
                f"but the logo submission failed: {getattr(e, 'message', str(e))}",
                record=record_ref,
            ) from e

        logger.info(f"Logo pull request created: {asset_ref.pull_request_url}")
        return SubmissionResult(record=record_ref, asset=asset_ref)


@asynccontextmanager
async def github_orchestrator(settings: Settings) -> AsyncIterator[ContributionOrchestrator]:
    """
    Build an orchestrator backed by GitHub for one request.

    Raises:
        ConfigurationError: If no GitHub token is configured
    """
    token = settings.github_token()
    if not token:
        raise ConfigurationError("Missing OLI_GITHUB_TOKEN (or GITHUB_TOKEN) on the server.")

    repositories = settings.resolve_repositories()
    options = SubmissionOptions(
        repositories=repositories,
        target_owner=settings.OLI_GITHUB_TARGET_OWNER or None,
        auto_create_fork=settings.OLI_GITHUB_AUTO_CREATE_FORK,
        branch_prefix=settings.OLI_GITHUB_BRANCH_PREFIX or None,
        validate_records=True,
    )

    async with GitHubClient(
        token, api_url=settings.GITHUB_API_URL, timeout=settings.GITHUB_TIMEOUT_SECONDS
    ) as github:
        yield ContributionOrchestrator(
            upstream=GitHubUpstreamFetcher(github, repositories.projects),
            submitter=GitHubChangeRequestSubmitter(github, options),
            normalizer=DraftNormalizer(max_logo_base64_chars=settings.MAX_LOGO_BASE64_CHARS),
            schema_version=settings.PROJECT_SCHEMA_VERSION,
        )
