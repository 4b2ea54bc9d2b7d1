"""Merge logic between upstream project records and user drafts."""

import logging
from typing import Any, Dict

from project_contribution.models.records import (
    SOCIAL_PLATFORM_ORDER,
    CanonicalRecord,
    DraftRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_VERSION = 7


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_version_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _order_social(social: Dict[str, Any]) -> Dict[str, Any]:
    ordered = {platform: social[platform] for platform in SOCIAL_PLATFORM_ORDER if platform in social}
    for platform in sorted(social):
        if platform not in ordered:
            ordered[platform] = social[platform]
    return ordered


def canonicalize(record: CanonicalRecord) -> CanonicalRecord:
    """
    Return ``record`` with a deterministic field order.

    Top-level ordering is applied by ``CanonicalRecord.to_mapping``; this also
    orders social platforms so the serialized YAML is stable regardless of the
    order fields arrived in.
    """
    mapping = record.to_mapping()
    if isinstance(mapping.get("social"), dict):
        mapping["social"] = _order_social(mapping["social"])
    return CanonicalRecord.from_mapping(mapping)


def build_record(draft: DraftRecord, schema_version: int = DEFAULT_SCHEMA_VERSION) -> CanonicalRecord:
    """Build the record for a brand-new project from its draft."""
    mapping = draft.to_mapping()
    mapping.setdefault("version", schema_version)
    return canonicalize(CanonicalRecord.from_mapping(mapping))


def reconcile(existing: CanonicalRecord, draft: DraftRecord) -> CanonicalRecord:
    """
    Merge a user's draft into the upstream record of the project it edits.

    Rules:
        1. Draft-set fields overwrite; every other field of ``existing``,
           including unknown extension fields, is carried over unchanged.
        2. ``name``: an existing non-empty name wins over the draft's.
        3. ``version``: an existing integer version wins over the draft's.
        4. ``social``: only when the draft sets it (even to ``{}``), merged
           per platform with draft platforms replacing existing ones.
        5. The result is canonicalized.

    Args:
        existing: Record currently stored upstream
        draft: Normalized user draft

    Returns:
        CanonicalRecord: The merged record
    """
    existing_mapping = existing.to_mapping()
    draft_mapping = draft.to_mapping()
    merged = {**existing_mapping, **draft_mapping}

    if _has_text(existing.name):
        merged["name"] = existing.name

    if _is_version_number(existing.version):
        merged["version"] = existing.version

    if draft.social is not None:
        existing_social = existing.social if isinstance(existing.social, dict) else {}
        merged["social"] = {**existing_social, **draft.social}

    overwritten = sorted(key for key in draft_mapping if key in existing_mapping)
    logger.debug(f"Reconciled {merged.get('name')}: draft overwrote {overwritten or 'nothing'}")

    return canonicalize(CanonicalRecord.from_mapping(merged))
