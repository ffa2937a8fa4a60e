"""
Configuration management for pspassess.

This module handles loading and validating tool settings, and loading the
organization config that drives policy rendering and assessments.
"""

from pspassess.config.organization import (
    APPLICABILITY_FLAGS,
    REQUIRED_ORGANIZATION_FIELDS,
    OrganizationConfig,
    OrganizationConfigError,
    derive_applicability_text,
    load_organization_config,
    validate_organization,
)
from pspassess.config.settings import (
    ConfigurationError,
    RiskRegistryConfig,
    Settings,
    load_config,
)

__all__ = [
    # Settings
    "Settings",
    "RiskRegistryConfig",
    "load_config",
    "ConfigurationError",
    # Organization
    "OrganizationConfig",
    "OrganizationConfigError",
    "load_organization_config",
    "validate_organization",
    "derive_applicability_text",
    "REQUIRED_ORGANIZATION_FIELDS",
    "APPLICABILITY_FLAGS",
]
