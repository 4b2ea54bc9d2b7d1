"""
GitHub-backed change-request submission.

Each proposed change becomes one branch with a single commit and one pull
request against the target repository. Branches are pushed to a fork when the
acting account does not own the target repository.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from project_contribution.core.collaborators import AssetSubmission, RecordSubmission
from project_contribution.core.errors import SubmissionError, ValidationError
from project_contribution.integrations.github import GitHubAPIError, GitHubClient
from project_contribution.models.project_yaml import (
    dump_project_yaml,
    logo_file_path,
    project_file_path,
    validate_project_record,
)
from project_contribution.models.records import (
    ChangeRequestRef,
    ContributionMode,
    ContributionRepositories,
    RepositoryRef,
)

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_PREFIX = "project-contribution"


@dataclass(frozen=True)
class SubmissionOptions:
    """How and where change requests are opened."""

    repositories: ContributionRepositories
    target_owner: Optional[str] = None
    auto_create_fork: bool = True
    branch_prefix: Optional[str] = None
    validate_records: bool = True
    actor_label: str = "project-contribution-service"
    fork_poll_attempts: int = 10
    fork_poll_interval_seconds: float = 2.0


class GitHubChangeRequestSubmitter:
    """
    Opens pull requests for project YAML files and logos.
    """

    def __init__(
        self,
        github: GitHubClient,
        options: SubmissionOptions,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.github = github
        self.options = options
        self._clock = clock
        self._login: Optional[str] = None

    async def submit_record(self, submission: RecordSubmission) -> ChangeRequestRef:
        """
        Open a pull request adding or updating a project YAML file.

        In edit mode the file path is recomputed from ``existing_name`` so the
        change lands on the file that was fetched.

        Raises:
            ValidationError: If the record fails schema validation
            SubmissionError: If GitHub rejects any step
        """
        record = submission.record
        if self.options.validate_records:
            errors = validate_project_record(record)
            if errors:
                raise ValidationError(f"Project YAML failed validation: {'; '.join(errors)}")

        is_edit = submission.mode == ContributionMode.EDIT
        path_name = submission.existing_name if is_edit and submission.existing_name else record.name
        try:
            file_path = project_file_path(path_name)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        verb = "Update" if is_edit else "Add"
        title = f"{verb} project {record.display_name} ({record.name})"
        try:
            return await self._open_change_request(
                repository=self.options.repositories.projects,
                kind=f"{submission.mode.value}-project",
                slug=str(record.name),
                file_path=file_path,
                content=dump_project_yaml(record).encode("utf-8"),
                title=title,
                refuse_existing=not is_edit,
            )
        except GitHubAPIError as e:
            logger.error(f"Project YAML pull request failed for {record.name}: {e.message}")
            raise SubmissionError(f"Failed to open project YAML pull request: {e.message}") from e

    async def submit_asset(self, submission: AssetSubmission) -> ChangeRequestRef:
        """
        Open a pull request adding or replacing a project logo.

        Raises:
            SubmissionError: If GitHub rejects any step
        """
        asset = submission.asset
        try:
            file_path = logo_file_path(asset.project_name, asset.file_name, asset.mime_type)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        verb = "Update" if asset.mode == ContributionMode.EDIT else "Add"
        try:
            return await self._open_change_request(
                repository=self.options.repositories.logos,
                kind=f"{asset.mode.value}-logo",
                slug=asset.project_name,
                file_path=file_path,
                content=asset.content,
                title=f"{verb} logo for {asset.project_name}",
                refuse_existing=False,
            )
        except GitHubAPIError as e:
            logger.error(f"Logo pull request failed for {asset.project_name}: {e.message}")
            raise SubmissionError(f"Failed to open logo pull request: {e.message}") from e

    async def _authenticated_login(self) -> str:
        if self._login is None:
            self._login = await self.github.get_authenticated_login()
        return self._login

    async def _resolve_head_owner(self) -> str:
        return self.options.target_owner or await self._authenticated_login()

    async def _ensure_fork(self, repository: RepositoryRef, head_owner: str) -> None:
        if await self.github.get_repository(head_owner, repository.repo) is not None:
            return
        if not self.options.auto_create_fork:
            raise SubmissionError(
                f"No fork of {repository.full_name} found for {head_owner} "
                "and automatic fork creation is disabled."
            )

        organization = None
        if self.options.target_owner:
            login = await self._authenticated_login()
            if self.options.target_owner.lower() != login.lower():
                organization = self.options.target_owner
        await self.github.create_fork(repository.owner, repository.repo, organization=organization)

        # Forks are created asynchronously by GitHub.
        for _ in range(self.options.fork_poll_attempts):
            if await self.github.get_repository(head_owner, repository.repo) is not None:
                return
            await asyncio.sleep(self.options.fork_poll_interval_seconds)
        raise SubmissionError(f"Fork {head_owner}/{repository.repo} did not become available in time.")

    def _branch_name(self, kind: str, slug: str) -> str:
        prefix = (self.options.branch_prefix or DEFAULT_BRANCH_PREFIX).strip("/")
        return f"{prefix}/{kind}-{slug}-{self._clock():%Y%m%d%H%M%S}"

    async def _open_change_request(
        self,
        repository: RepositoryRef,
        kind: str,
        slug: str,
        file_path: str,
        content: bytes,
        title: str,
        refuse_existing: bool,
    ) -> ChangeRequestRef:
        head_owner = await self._resolve_head_owner()
        if head_owner.lower() != repository.owner.lower():
            await self._ensure_fork(repository, head_owner)

        existing = await self.github.get_file(
            repository.owner, repository.repo, file_path, repository.base_branch
        )
        if existing is not None and refuse_existing:
            raise SubmissionError(
                f"{file_path} already exists in {repository.full_name}. Use edit mode to change it."
            )

        base_sha = await self.github.get_branch_sha(
            repository.owner, repository.repo, repository.base_branch
        )
        branch_name = self._branch_name(kind, slug)
        await self.github.create_branch(head_owner, repository.repo, branch_name, base_sha)

        await self.github.put_file(
            head_owner,
            repository.repo,
            file_path,
            content,
            message=title,
            branch=branch_name,
            sha=existing.get("sha") if existing else None,
        )
        pull_request = await self.github.create_pull_request(
            repository.owner,
            repository.repo,
            title=title,
            head=f"{head_owner}:{branch_name}",
            base=repository.base_branch,
            body=f"{title}.\n\nSubmitted via {self.options.actor_label}.",
        )

        logger.info(f"Opened {pull_request['html_url']} for {file_path} on {branch_name}")
        return ChangeRequestRef(
            file_path=file_path,
            branch_name=branch_name,
            pull_request_url=pull_request["html_url"],
        )
