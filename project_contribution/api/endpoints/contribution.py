"""
Project contribution API endpoints.

This module implements the endpoint that accepts new or edited project
listings and turns them into pull requests against the project and logo
repositories.
"""

import logging
from typing import Any, AsyncContextManager, Callable

from fastapi import APIRouter, Depends, Request

from project_contribution.config.settings import settings
from project_contribution.core.admission import AdmissionController
from project_contribution.core.errors import ContributionError, RateLimitError, UnexpectedError
from project_contribution.core.normalizer import DraftNormalizer
from project_contribution.core.orchestrator import ContributionOrchestrator, github_orchestrator
from project_contribution.models.dtos import ContributionResponse, ErrorResponse

router = APIRouter()
logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[], AsyncContextManager[ContributionOrchestrator]]


def get_client_key(request: Request) -> str:
    """
    Identify the caller for rate limiting.

    Uses the first ``X-Forwarded-For`` entry, then ``X-Real-IP``, then the
    socket peer address.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


# Dependency to get the process-wide admission controller
def get_admission_controller(request: Request) -> AdmissionController:
    """Get the admission controller stored on the application."""
    return request.app.state.admission_controller


# Dependency to get a normalizer instance
def get_normalizer() -> DraftNormalizer:
    """Get draft normalizer instance."""
    return DraftNormalizer(max_logo_base64_chars=settings.MAX_LOGO_BASE64_CHARS)


# Dependency to get the orchestrator factory
def get_orchestrator_factory() -> OrchestratorFactory:
    """Get a factory opening a GitHub-backed orchestrator for one request."""
    return lambda: github_orchestrator(settings)


async def enforce_rate_limit(
    request: Request,
    controller: AdmissionController = Depends(get_admission_controller),
) -> None:
    """
    Reject the request when the caller exhausted its quota.

    Raises:
        RateLimitError: If the client is over its limit for the current window
    """
    decision = controller.admit(get_client_key(request))
    if not decision.allowed:
        raise RateLimitError(
            "Too many requests. Please wait before submitting again.",
            retry_after_seconds=decision.retry_after_seconds,
        )


async def read_json_body(request: Request) -> Any:
    """Return the decoded JSON body, or ``None`` if it is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post(
    "/project-contribution",
    response_model=ContributionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid project fields"},
        413: {"model": ErrorResponse, "description": "Logo exceeds the size cap"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Configuration, GitHub or unexpected failure"},
    },
)
async def submit_project_contribution(
    request: Request,
    _: None = Depends(enforce_rate_limit),
    normalizer: DraftNormalizer = Depends(get_normalizer),
    orchestrator_factory: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> ContributionResponse:
    """
    Submit a new project or an edit of an existing one.

    Validates the body, reconciles edits with the current upstream YAML and
    opens a pull request for the YAML file and, when a logo is attached, a
    separate pull request for the logo.

    Returns:
        ContributionResponse: Pull request URLs, file paths and branch names

    Raises:
        ContributionError: Translated to an ``{"error": ...}`` response
    """
    try:
        raw_body = await read_json_body(request)
        contribution = normalizer.normalize(raw_body)

        async with orchestrator_factory() as orchestrator:
            result = await orchestrator.process(contribution)

        logger.info(
            f"Contribution for {contribution.draft.name} submitted: {result.record.pull_request_url}"
        )
        return ContributionResponse.from_result(result)

    except ContributionError as e:
        logger.warning(f"Contribution rejected ({e.status_code}): {e.message}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error submitting contribution: {str(e)}", exc_info=True)
        raise UnexpectedError("Failed to submit project contribution.") from e
