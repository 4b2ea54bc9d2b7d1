"""
Upstream Fetcher component for the Project Contribution Service.

Reads the current project YAML from the record-store repository so that edits
can be reconciled against it. It only retrieves and decodes; merging is the
reconciler's job.
"""
import base64
import binascii
import logging

from project_contribution.core.errors import FetchError
from project_contribution.integrations.github import GitHubAPIError, GitHubClient
from project_contribution.models.project_yaml import parse_project_yaml, project_file_path
from project_contribution.models.records import CanonicalRecord, RepositoryRef

logger = logging.getLogger(__name__)


def decode_github_file_content(content: str) -> str:
    """Decode the base64 ``content`` field of a contents API response."""
    return base64.b64decode(content.replace("\n", "")).decode("utf-8")


class GitHubUpstreamFetcher:
    """
    Fetches canonical project records from a GitHub repository.
    """

    def __init__(self, github: GitHubClient, repository: RepositoryRef):
        self.github = github
        self.repository = repository

    async def fetch_canonical(self, identifier: str) -> CanonicalRecord:
        """
        Fetch and decode the project record stored under ``identifier``.

        Args:
            identifier: Project slug

        Returns:
            CanonicalRecord: The record as of the configured base branch

        Raises:
            FetchError: If the file cannot be read, is not base64 content, or
                is not a valid project YAML document
        """
        try:
            file_path = project_file_path(identifier)
        except ValueError as e:
            raise FetchError(str(e)) from e

        ref = self.repository.base_branch or "main"
        logger.info(f"Fetching {self.repository.full_name}:{file_path}@{ref} for edit mode")

        try:
            payload = await self.github.get_file(
                self.repository.owner, self.repository.repo, file_path, ref
            )
        except GitHubAPIError as e:
            logger.error(f"Failed to load {file_path}: {e.message}")
            raise FetchError(
                f"Could not load existing project YAML for edit mode ({file_path}): {e.message}",
                upstream_status=e.status_code,
                upstream_body=e.body,
            ) from e

        if payload is None:
            raise FetchError(
                f"Could not load existing project YAML for edit mode ({file_path}): HTTP 404 Not Found",
                upstream_status=404,
            )

        content = payload.get("content") if isinstance(payload, dict) else None
        encoding = payload.get("encoding") if isinstance(payload, dict) else None
        if not content or encoding != "base64":
            raise FetchError(
                f"Unexpected GitHub content response for {file_path}. Missing base64-encoded content."
            )

        try:
            yaml_text = decode_github_file_content(content)
            return parse_project_yaml(yaml_text)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise FetchError(f"Could not decode existing project YAML ({file_path}): {e}") from e
