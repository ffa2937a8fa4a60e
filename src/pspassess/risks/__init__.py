"""
Risk registry integration.

Example:
    from pspassess.risks import RiskRegistryClient

    client = RiskRegistryClient(account_id, api_token)
    risks = client.query_risks()
"""

from pspassess.risks.client import (
    RISK_QUERY,
    RiskRecord,
    RiskRegistryAuthenticationError,
    RiskRegistryClient,
    RiskRegistryConfigurationError,
    RiskRegistryConnectionError,
    RiskRegistryError,
)

__all__ = [
    "RiskRegistryClient",
    "RiskRecord",
    "RiskRegistryError",
    "RiskRegistryConfigurationError",
    "RiskRegistryAuthenticationError",
    "RiskRegistryConnectionError",
    "RISK_QUERY",
]
