"""
Risk registry client.

Queries a JupiterOne-compatible GraphQL API for risk entities recorded in
the last year, so they can be listed in the self-assessment report.

Authentication:
    - account_id: registry account identifier (sent as the account header)
    - api_token: API token (sent as a bearer token)

Failures are terminal for the run: there is no automatic retry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)

RISK_QUERY = "find Risk with _beginOn > date.now - 1year"

GRAPHQL_QUERY = """
query J1QL($query: String!, $variables: JSON, $cursor: String) {
  queryV1(query: $query, variables: $variables, cursor: $cursor) {
    type
    data
    cursor
  }
}
"""

ENVIRONMENT_URLS = {
    "us": "https://api.us.jupiterone.io/graphql",
    "fedramp": "https://api.fedramp.jupiterone.io/graphql",
    "dev": "https://api.dev.jupiterone.io/graphql",
}

MAX_PAGES = 100


# -----------------------------------------------------------------------------
# Error Classes
# -----------------------------------------------------------------------------


class RiskRegistryError(Exception):
    """Base exception for risk registry errors."""

    pass


class RiskRegistryConfigurationError(RiskRegistryError):
    """Raised when account id, token or environment are missing or invalid."""

    pass


class RiskRegistryAuthenticationError(RiskRegistryError):
    """Raised when the registry rejects the credentials."""

    pass


class RiskRegistryConnectionError(RiskRegistryError):
    """Raised on network errors and timeouts."""

    pass


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskRecord:
    """
    A risk item from the registry.

    Attributes:
        id: Registry entity id.
        name: Display name.
        description: Risk description.
        status: Treatment status (open, mitigated, accepted...).
        probability: Likelihood rating.
        impact: Impact rating.
        owner: Responsible person or team.
    """

    id: str
    name: str
    description: str = ""
    status: str = ""
    probability: str = ""
    impact: str = ""
    owner: str = ""

    @classmethod
    def from_entity(cls, item: dict[str, Any]) -> RiskRecord:
        """
        Build a RiskRecord from a query result item.

        Accepts both {"entity": {...}, "properties": {...}} items and flat
        property mappings.
        """
        entity = item.get("entity", item) or {}
        properties = item.get("properties", item) or {}

        def prop(*names: str) -> str:
            for name in names:
                value = properties.get(name, entity.get(name))
                if value not in (None, ""):
                    return str(value)
            return ""

        return cls(
            id=prop("_id", "id"),
            name=prop("displayName", "name", "_key") or "(unnamed risk)",
            description=prop("description", "summary"),
            status=prop("status"),
            probability=prop("probability", "likelihood"),
            impact=prop("impact"),
            owner=prop("owner", "assignee"),
        )


# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------


class RiskRegistryClient:
    """
    Read-only client for the risk registry.

    Example:
        client = RiskRegistryClient("acme", token)
        for risk in client.query_risks():
            print(risk.name, risk.status)

    Attributes:
        account_id: Registry account identifier.
        endpoint: GraphQL endpoint URL.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        environment: str = "us",
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not account_id:
            raise RiskRegistryConfigurationError(
                "Missing risk registry account id (--account)"
            )
        if not api_token:
            raise RiskRegistryConfigurationError(
                "Missing risk registry API token (--api-token)"
            )

        if base_url:
            self.endpoint = base_url.rstrip("/")
        else:
            endpoint = ENVIRONMENT_URLS.get(environment.lower())
            if endpoint is None:
                raise RiskRegistryConfigurationError(
                    f"Unknown risk registry environment: {environment}. "
                    f"Must be one of: {', '.join(ENVIRONMENT_URLS)}"
                )
            self.endpoint = endpoint

        self.account_id = account_id
        self.timeout = timeout
        self._api_token = api_token
        self._session: requests.Session | None = None

    def _get_session(self) -> requests.Session:
        if self._session is not None:
            return self._session

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {self._api_token}",
                "JupiterOne-Account": self.account_id,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        return self._session

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Post a GraphQL request.

        Raises:
            RiskRegistryAuthenticationError: On 401/403.
            RiskRegistryConnectionError: On network errors and timeouts.
            RiskRegistryError: On other HTTP or GraphQL errors.
        """
        session = self._get_session()
        start_time = time.time()

        try:
            response = session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise RiskRegistryConnectionError(f"Risk registry request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise RiskRegistryConnectionError(f"Failed to connect to risk registry: {e}") from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"API call: POST {self.endpoint} -> {response.status_code} ({duration_ms:.0f}ms)")

        if response.status_code in (401, 403):
            raise RiskRegistryAuthenticationError(
                "Risk registry authentication failed. Check account id and API token."
            )

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise RiskRegistryError(f"Risk registry request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise RiskRegistryError("Risk registry returned a non-JSON response") from e

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise RiskRegistryError(f"Risk registry query failed: {messages}")

        return body

    def query_risks(self, query: str = RISK_QUERY) -> list[RiskRecord]:
        """
        Fetch risk records, following result cursors.

        Returns:
            Risk records in registry order.

        Raises:
            RiskRegistryError: Or a subclass, on any failure.
        """
        records: list[RiskRecord] = []
        cursor: str | None = None

        for _ in range(MAX_PAGES):
            variables: dict[str, Any] = {"query": query}
            if cursor:
                variables["cursor"] = cursor
            body = self._post({"query": GRAPHQL_QUERY, "variables": variables})

            result = (body.get("data") or {}).get("queryV1") or {}
            items = result.get("data") or []
            if not isinstance(items, list):
                raise RiskRegistryError("Unexpected risk registry result shape")
            records.extend(RiskRecord.from_entity(item) for item in items if isinstance(item, dict))

            cursor = result.get("cursor")
            if not cursor:
                break
        else:
            logger.warning(f"Stopped reading risks after {MAX_PAGES} pages")

        logger.info(f"Retrieved {len(records)} risk records")
        return records

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
