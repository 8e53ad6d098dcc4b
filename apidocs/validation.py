"""Advisory validation of an API description document.

Validation never blocks generation: every problem is reported as a warning and
the normalizer substitutes display defaults for the missing fields.
"""
import logging
from collections.abc import Mapping

from pydantic import BaseModel

from .errors import DocumentParseError
from .models import parse_document, split_path_item, validate_document

logger = logging.getLogger(__name__)

# Path-item fields that are valid OpenAPI but not rendered as operations.
PATH_ITEM_FIELDS = {"summary", "description", "parameters", "servers", "$ref"}


class ValidationResult(BaseModel):
    valid: bool
    warnings: list[str] = []


def validate(raw: str | bytes | Mapping) -> ValidationResult:
    """Check a document for the recommended fields; returns warnings, never raises on content."""
    config = parse_document(raw)
    warnings: list[str] = []

    info = config.get("info")
    if not isinstance(info, Mapping):
        warnings.append("Missing info section")
    else:
        if not info.get("title"):
            warnings.append("Missing info.title")
        if not info.get("version"):
            warnings.append("Missing info.version")

    paths = config.get("paths")
    if not isinstance(paths, Mapping) or not paths:
        warnings.append("Missing or empty paths section")
    else:
        for path, path_item in paths.items():
            if not isinstance(path_item, Mapping):
                warnings.append(f"Ignoring path {path!r}: path item is not a mapping")
                continue
            _, skipped = split_path_item(path_item)
            for key in skipped:
                if key not in PATH_ITEM_FIELDS:
                    warnings.append(f"Ignoring key {key!r} under path {path!r}: not an HTTP operation")

    try:
        _, repairs = validate_document(config)
    except DocumentParseError as e:
        warnings.append(str(e))
    else:
        warnings.extend(repairs)

    if warnings:
        logger.warning("Configuration validation warnings: %s", warnings)
    return ValidationResult(valid=not warnings, warnings=warnings)
