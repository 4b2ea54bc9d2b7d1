"""Project YAML files: storage paths, parsing, serialization and schema checks."""

import logging
import posixpath
import re
from typing import Any, List, Optional

import yaml

from project_contribution.models.records import CanonicalRecord

logger = logging.getLogger(__name__)

PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")
PROJECTS_DIR = "data/projects"
LOGOS_DIR = "logos"
DEFAULT_LOGO_EXTENSION = "png"

LOGO_EXTENSIONS_BY_MIME_TYPE = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/svg+xml": "svg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def is_valid_project_name(name: Any) -> bool:
    """Whether ``name`` is a lowercase, path-safe project slug."""
    return isinstance(name, str) and bool(PROJECT_NAME_PATTERN.match(name))


def project_file_path(name: str) -> str:
    """
    Return the repository path of a project's YAML file.

    Projects are sharded by the first character of their slug, e.g.
    ``data/projects/a/acme.yaml``.

    Raises:
        ValueError: If ``name`` is not a valid project slug
    """
    if not is_valid_project_name(name):
        raise ValueError(f"Invalid project name: {name!r}")
    return f"{PROJECTS_DIR}/{name[0]}/{name}.yaml"


def logo_file_path(
    name: str, file_name: Optional[str] = None, mime_type: Optional[str] = None
) -> str:
    """
    Return the repository path of a project's logo.

    The extension comes from the MIME type when it is a known image type,
    otherwise from the uploaded file name, otherwise ``png``.
    """
    if not is_valid_project_name(name):
        raise ValueError(f"Invalid project name: {name!r}")

    extension = LOGO_EXTENSIONS_BY_MIME_TYPE.get((mime_type or "").lower())
    if extension is None and file_name:
        _, ext = posixpath.splitext(file_name)
        ext = ext.lstrip(".").lower()
        if ext and ext.isalnum():
            extension = "jpg" if ext == "jpeg" else ext
    return f"{LOGOS_DIR}/{name}.{extension or DEFAULT_LOGO_EXTENSION}"


def parse_project_yaml(text: str) -> CanonicalRecord:
    """
    Parse a project YAML document.

    Raises:
        ValueError: If the document is not valid YAML or not a mapping
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid project YAML: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Project YAML must be a mapping at the top level")
    return CanonicalRecord.from_mapping(data)


def dump_project_yaml(record: CanonicalRecord) -> str:
    """Serialize a record to YAML, keeping its canonical field order."""
    return yaml.safe_dump(
        record.to_mapping(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def _url_list_errors(field_name: str, value: Any) -> List[str]:
    if not isinstance(value, list):
        return [f"{field_name} must be a list"]
    errors = []
    for index, entry in enumerate(value):
        url = entry.get("url") if isinstance(entry, dict) else None
        if not isinstance(url, str) or not url.strip():
            errors.append(f"{field_name}[{index}] must be a mapping with a non-empty 'url'")
    return errors


def validate_project_record(record: CanonicalRecord) -> List[str]:
    """
    Validate a record against the project YAML schema.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not isinstance(record.version, int) or isinstance(record.version, bool):
        errors.append("version must be an integer")
    if not is_valid_project_name(record.name):
        errors.append("name must be a lowercase slug (letters, digits, '.', '-', '_')")
    if not isinstance(record.display_name, str) or not record.display_name.strip():
        errors.append("display_name must be a non-empty string")
    if record.description is not None and not isinstance(record.description, str):
        errors.append("description must be a string")

    if record.websites is not None:
        errors.extend(_url_list_errors("websites", record.websites))
    if record.github is not None:
        errors.extend(_url_list_errors("github", record.github))

    if record.social is not None:
        if not isinstance(record.social, dict):
            errors.append("social must be a mapping of platform to URL list")
        else:
            for platform, entries in record.social.items():
                errors.extend(_url_list_errors(f"social.{platform}", entries))

    return errors
