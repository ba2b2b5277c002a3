"""
Bundle validation, import and export.

Two loaders exist on purpose:
- ``validate_bundle`` is strict about the top-level shape and is used for
  user-supplied files; a rejected file is reported back to the user.
- ``load_bundle_lenient`` is used for documents coming back from the remote
  store; missing parts fall back to defaults so loading never blocks.
Neither rejects a bundle for what is nested inside its three fields.
"""

import json
from collections.abc import Mapping
from datetime import date
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from healthlog.domain.errors import InvalidBundleError
from healthlog.domain.models import (
    UserDataBundle,
    date_key,
    normalize_catalog,
    normalize_day,
    normalize_pattern,
)
from healthlog.services.result import Result

logger = structlog.get_logger(__name__)


class BundleEnvelope(BaseModel):
    """Top-level shape of a bundle document; contents are checked later, leniently."""

    model_config = ConfigDict(populate_by_name=True)

    health_data: dict[str, Any] = Field(alias="healthData")
    medications: list[Any]
    standard_pattern: dict[str, Any] = Field(alias="standardPattern")


def _from_parts(
    health_data: Mapping[str, Any], medications: list[Any], pattern: Any
) -> UserDataBundle:
    return UserDataBundle(
        health_data={str(day): normalize_day(record) for day, record in health_data.items()},
        medications=normalize_catalog(medications),
        standard_pattern=normalize_pattern(pattern),
    )


def validate_bundle(raw: Any) -> Result[UserDataBundle, InvalidBundleError]:
    """Check the bundle shape and build a ``UserDataBundle`` from it."""
    try:
        envelope = BundleEnvelope.model_validate(raw)
    except ValidationError as e:
        missing = [
            str(err["loc"][0]) for err in e.errors() if err["type"] == "missing" and err["loc"]
        ]
        if not isinstance(raw, Mapping):
            message = "Invalid file format: expected a JSON object"
        elif missing:
            message = f"Invalid file format: missing {', '.join(missing)}"
        else:
            bad = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            message = f"Invalid file format: wrong type for {', '.join(bad)}"
        logger.info("bundle_rejected", reason=message)
        return Result.err(InvalidBundleError(message, missing=missing))

    return Result.ok(
        _from_parts(envelope.health_data, envelope.medications, envelope.standard_pattern)
    )


def parse_bundle_text(text: str | bytes) -> UserDataBundle:
    """
    Parse an exported file's contents.

    Raw bytes are accepted so a file in the wrong encoding is reported like any
    other unreadable file. Raises ``InvalidBundleError`` on bad JSON or shape.
    """
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise InvalidBundleError(f"Invalid file format: not valid JSON ({e})") from e
    return validate_bundle(raw).unwrap()


def load_bundle_lenient(raw: Any, default: UserDataBundle) -> UserDataBundle:
    """Build a bundle from a remote document, falling back to ``default`` field by field."""
    if not isinstance(raw, Mapping):
        return default.model_copy(deep=True)

    health_data = raw.get("healthData")
    medications = raw.get("medications")
    pattern = raw.get("standardPattern")
    return _from_parts(
        health_data if isinstance(health_data, Mapping) else default.health_data,
        medications if isinstance(medications, list) else default.medications,
        pattern if isinstance(pattern, Mapping) else default.standard_pattern,
    )


def export_bundle(bundle: UserDataBundle) -> str:
    """Serialize the whole bundle as pretty-printed JSON."""
    return json.dumps(bundle.to_json_dict(), indent=2, ensure_ascii=False)


def export_filename(today: date) -> str:
    return f"health-data-{date_key(today)}.json"
