"""
Draft Normalizer for the Project Contribution Service.

Turns an untrusted, partially populated request body into a trusted
``DraftRecord`` plus an optional decoded ``LogoAsset``. Every check here runs
before any call to GitHub.
"""
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from project_contribution.core.errors import PayloadTooLargeError, ValidationError
from project_contribution.models.dtos import ContributionRequest, LogoInput, ProjectInput
from project_contribution.models.project_yaml import is_valid_project_name
from project_contribution.models.records import (
    ContributionMode,
    DraftRecord,
    LogoAsset,
    NormalizedContribution,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOGO_BASE64_CHARS = 700_000
SOCIAL_INPUT_FIELDS = ("twitter", "telegram")


def to_single_url_list(value: Optional[str]) -> Optional[List[Dict[str, str]]]:
    """Wrap a URL into a one-element list, or return ``None`` when it is empty."""
    return [{"url": value}] if value else None


def decode_logo_base64(value: str) -> bytes:
    """
    Decode base64 logo content, accepting a ``data:<mime>;base64,`` prefix.

    Raises:
        ValidationError: If the content is not valid base64
    """
    encoded = value.rsplit(",", 1)[-1] if "," in value else value
    try:
        return base64.b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Uploaded logo is not valid base64.") from e


class DraftNormalizer:
    """
    Converts raw contribution bodies into normalized drafts.
    """

    def __init__(self, max_logo_base64_chars: int = DEFAULT_MAX_LOGO_BASE64_CHARS):
        self.max_logo_base64_chars = max_logo_base64_chars

    def normalize(self, raw_body: Any) -> NormalizedContribution:
        """
        Normalize a decoded JSON body.

        Args:
            raw_body: The request body as parsed from JSON (any type)

        Returns:
            NormalizedContribution: mode, draft record and optional logo

        Raises:
            ValidationError: If the project payload or required fields are missing
            PayloadTooLargeError: If the logo exceeds the size cap
        """
        request = self._parse_request(raw_body)
        project = request.project

        # Size cap is checked on the encoded text, before anything is decoded.
        logo_base64 = request.logo.base64 if request.logo else None
        if logo_base64 and len(logo_base64) > self.max_logo_base64_chars:
            logger.info(f"Rejected logo of {len(logo_base64)} encoded characters")
            raise PayloadTooLargeError("Logo file is too large. Maximum size is 500 KB.")

        mode = ContributionMode.EDIT if request.mode == ContributionMode.EDIT.value else ContributionMode.ADD

        if not project.owner_project or not project.display_name:
            raise ValidationError("owner_project and display_name are required.")
        if not is_valid_project_name(project.owner_project):
            raise ValidationError(
                "owner_project must be a lowercase slug of letters, digits, '.', '-' or '_'."
            )

        draft = self.build_draft(project)
        logo = self._build_logo(request.logo, mode, project.owner_project) if logo_base64 else None

        logger.debug(
            f"Normalized {mode.value} contribution for {draft.name} "
            f"(logo: {'yes' if logo else 'no'})"
        )
        return NormalizedContribution(mode=mode, draft=draft, logo=logo)

    @staticmethod
    def _parse_request(raw_body: Any) -> ContributionRequest:
        if not isinstance(raw_body, dict):
            raise ValidationError("Missing project payload.")
        try:
            request = ContributionRequest.model_validate(raw_body)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid contribution payload: {e.error_count()} error(s).") from e
        if request.project is None:
            raise ValidationError("Missing project payload.")
        return request

    @staticmethod
    def build_draft(project: ProjectInput) -> DraftRecord:
        """
        Build a draft from validated project input.

        Optional fields the user left blank are omitted entirely, and the
        social map only carries platforms the user actually filled in.
        """
        social = {
            platform: [{"url": getattr(project, platform)}]
            for platform in SOCIAL_INPUT_FIELDS
            if getattr(project, platform)
        }
        return DraftRecord(
            name=project.owner_project,
            display_name=project.display_name,
            description=project.description,
            websites=to_single_url_list(project.website),
            github=to_single_url_list(project.main_github),
            social=social or None,
        )

    @staticmethod
    def _build_logo(logo: LogoInput, mode: ContributionMode, project_name: str) -> LogoAsset:
        content = decode_logo_base64(logo.base64)
        if not content:
            raise ValidationError("Uploaded logo is empty.")
        return LogoAsset(
            content=content,
            mode=mode,
            project_name=project_name,
            file_name=logo.file_name,
            mime_type=logo.mime_type,
        )
