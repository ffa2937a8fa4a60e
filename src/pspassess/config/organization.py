"""
Organization configuration for policy rendering and assessments.

The organization config is a JSON or YAML document describing the
organization being assessed:

    organization:
      companyFullName: Acme Health, Inc.
      companyShortName: Acme
      companyEmailDomain: acmehealth.example
      securityOfficerName: Jane Roe
      isHIPAACoveredEntity: false
      isHIPAABusinessAssociate: true
      ...

Attribute names are free-form and are handed to templates unchanged. The
caller's mapping is never modified; derived fields are returned in a new
context mapping.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Fields every assessment needs in order to produce a meaningful report
REQUIRED_ORGANIZATION_FIELDS = (
    "companyFullName",
    "companyShortName",
    "companyEmailDomain",
    "securityOfficerName",
)

# Boolean applicability flags that get an "is" / "is not" text companion
APPLICABILITY_FLAGS = (
    "isHIPAACoveredEntity",
    "isHIPAABusinessAssociate",
)


class OrganizationConfigError(Exception):
    """Raised when the organization config cannot be loaded or is incomplete."""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


@dataclass(frozen=True)
class OrganizationConfig:
    """
    Organization attributes as supplied by the caller.

    Attributes:
        organization: Free-form organization attributes.
        source: File the config was loaded from, if any.
    """

    organization: Mapping[str, Any] = field(default_factory=dict)
    source: Path | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.organization.get(key, default)

    @property
    def short_name(self) -> str:
        """Organization short name, falling back to the full name."""
        return str(
            self.organization.get("companyShortName")
            or self.organization.get("companyFullName")
            or "The organization"
        )

    def missing_fields(self) -> list[str]:
        """Return required fields that are absent or blank."""
        missing = []
        for name in REQUIRED_ORGANIZATION_FIELDS:
            value = self.organization.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    def is_valid(self) -> bool:
        return not self.missing_fields()

    def to_context(self) -> dict[str, Any]:
        """
        Build the template variable context for this organization.

        Returns a new mapping with every organization attribute plus the
        derived applicability texts (e.g. isHIPAACoveredEntityText).
        """
        context = dict(self.organization)
        context.update(derive_applicability_text(self.organization))
        return context


def derive_applicability_text(organization: Mapping[str, Any]) -> dict[str, str]:
    """
    Derive "is" / "is not" text fields for applicability flags.

    Args:
        organization: Organization attributes.

    Returns:
        Mapping of "<flag>Text" to "is" or "is not".
    """
    return {
        f"{flag}Text": "is" if organization.get(flag) is True else "is not"
        for flag in APPLICABILITY_FLAGS
    }


def load_organization_config(path: Path) -> OrganizationConfig:
    """
    Load an organization config from a JSON or YAML file.

    Files ending in ".json" are parsed with the json module; anything else
    is parsed as YAML.

    Args:
        path: Path to the config file.

    Returns:
        OrganizationConfig with the parsed attributes.

    Raises:
        OrganizationConfigError: If the file cannot be read or parsed, or
            does not contain an "organization" mapping.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except OSError as e:
        raise OrganizationConfigError(
            f"Unable to load configuration from {path}: {e}"
        ) from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise OrganizationConfigError(
            f"Unable to parse configuration from {path}: {e}"
        ) from e

    if not isinstance(data, dict):
        raise OrganizationConfigError(
            f"Configuration in {path} must be a mapping with an 'organization' key"
        )

    organization = data.get("organization")
    if not isinstance(organization, dict):
        raise OrganizationConfigError(
            f"Configuration in {path} has no 'organization' mapping"
        )

    logger.debug(f"Loaded {len(organization)} organization attributes from {path}")
    return OrganizationConfig(organization=dict(organization), source=path)


def validate_organization(config: OrganizationConfig) -> None:
    """
    Ensure the organization config has every required field.

    Raises:
        OrganizationConfigError: Listing the missing fields.
    """
    missing = config.missing_fields()
    if missing:
        raise OrganizationConfigError(
            "Organization config is missing required values: "
            f"{', '.join(missing)}. Please update your policy config file "
            "before running the assessment.",
            missing_fields=missing,
        )
