"""
Validated runtime settings for a sync run.

Settings come from one of two places:
- the AWS Secrets Manager secret (deployed Lambda), whose JSON uses
  camelCase keys
- a local YAML file (CLI runs), which uses snake_case keys

Both spellings are accepted by Settings.from_dict. The run environment
(dev or prod) is always read from the RunEnvironment variable.

Secret format:

    {
        "entraTenantId": "00000000-0000-0000-0000-000000000000",
        "entraClientId": "00000000-0000-0000-0000-000000000000",
        "entraClientCertificate": "<base64 PEM>",
        "googleDelegatedUser": "admin@example.com",
        "googleServiceAccountJson": "{\\"type\\": \\"service_account\\", ...}",
        "deleteRemovedContacts": true
    }
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from gsuite_dirsync.api.graph_api import MAX_PAGE_SIZE as GRAPH_MAX_PAGE_SIZE
from gsuite_dirsync.api.transport import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)
from gsuite_dirsync.config.loader import ConfigError, ConfigLoader
from gsuite_dirsync.config.secrets import CONFIG_SECRET, get_secrets

# Environment variable naming the run environment
ENV_RUN_ENVIRONMENT = "RunEnvironment"

# Secret (camelCase) key -> settings field
SECRET_KEY_ALIASES = {
    "entraTenantId": "entra_tenant_id",
    "entraClientId": "entra_client_id",
    "entraClientCertificate": "entra_client_certificate",
    "googleDelegatedUser": "google_delegated_user",
    "googleServiceAccountJson": "google_service_account_json",
    "deleteRemovedContacts": "delete_removed_contacts",
}

REQUIRED_STRING_FIELDS = (
    "entra_tenant_id",
    "entra_client_id",
    "entra_client_certificate",
    "google_delegated_user",
    "google_service_account_json",
)

logger = logging.getLogger(__name__)


class SettingsError(Exception):
    """Raised when settings are missing or invalid."""

    pass


class Environment(str, Enum):
    """Deployment environment label, used for logging and the response."""

    DEV = "dev"
    PROD = "prod"


VALID_ENVIRONMENTS = {env.value for env in Environment}


@dataclass
class Settings:
    """
    Everything a sync run needs, already validated.

    Attributes:
        entra_tenant_id: Entra ID tenant id
        entra_client_id: App registration client id
        entra_client_certificate: Base64-encoded PEM certificate
        google_delegated_user: Workspace user impersonated by the service
            account; its domain selects the shared contacts feed
        google_service_account_json: Service account key (JSON text)
        environment: Run environment label
        delete_removed_contacts: Delete contacts of users no longer in Entra
        graph_page_size: Users per Graph page
        contacts_page_size: Contacts per feed page
        api_max_retries: Attempts per page read
        api_initial_retry_delay: Initial backoff delay (seconds)
        api_max_retry_delay: Maximum backoff delay (seconds)
        http_timeout: Per-request timeout (seconds)
    """

    entra_tenant_id: str
    entra_client_id: str
    entra_client_certificate: str
    google_delegated_user: str
    google_service_account_json: str
    environment: Environment = Environment.DEV
    delete_removed_contacts: bool = True
    graph_page_size: int = GRAPH_MAX_PAGE_SIZE
    contacts_page_size: int = 1000
    api_max_retries: int = DEFAULT_MAX_RETRIES
    api_initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY
    api_max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY
    http_timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], environment: str | Environment | None
    ) -> Settings:
        """
        Create Settings from a secret or YAML dictionary.

        Args:
            data: Configuration values (camelCase or snake_case keys)
            environment: Run environment ("dev" or "prod")

        Returns:
            Validated Settings

        Raises:
            SettingsError: If a required value is missing or a value is invalid
        """
        if not isinstance(data, Mapping):
            raise SettingsError(
                f"Configuration must be a dictionary, got {type(data).__name__}"
            )

        values = {SECRET_KEY_ALIASES.get(k, k): v for k, v in data.items()}

        for name in REQUIRED_STRING_FIELDS:
            value = values.get(name)
            if not isinstance(value, str) or not value.strip():
                raise SettingsError(f"{name} is required")

        env_value = (
            environment.value if isinstance(environment, Environment) else environment
        )
        if env_value not in VALID_ENVIRONMENTS:
            raise SettingsError(
                f"Invalid environment {env_value!r}. "
                f"Must be one of: {', '.join(sorted(VALID_ENVIRONMENTS))}"
            )

        delete_removed = values.get("delete_removed_contacts", True)
        if not isinstance(delete_removed, bool):
            raise SettingsError(
                f"delete_removed_contacts must be a boolean, "
                f"got {type(delete_removed).__name__}"
            )

        graph_page_size = _positive_int(values, "graph_page_size", GRAPH_MAX_PAGE_SIZE)
        if graph_page_size > GRAPH_MAX_PAGE_SIZE:
            raise SettingsError(
                f"graph_page_size must be <= {GRAPH_MAX_PAGE_SIZE}, "
                f"got {graph_page_size}"
            )

        return cls(
            entra_tenant_id=values["entra_tenant_id"],
            entra_client_id=values["entra_client_id"],
            entra_client_certificate=values["entra_client_certificate"],
            google_delegated_user=values["google_delegated_user"],
            google_service_account_json=values["google_service_account_json"],
            environment=Environment(env_value),
            delete_removed_contacts=delete_removed,
            graph_page_size=graph_page_size,
            contacts_page_size=_positive_int(values, "contacts_page_size", 1000),
            api_max_retries=_positive_int(
                values, "api_max_retries", DEFAULT_MAX_RETRIES
            ),
            api_initial_retry_delay=_positive_float(
                values, "api_initial_retry_delay", DEFAULT_INITIAL_RETRY_DELAY
            ),
            api_max_retry_delay=_positive_float(
                values, "api_max_retry_delay", DEFAULT_MAX_RETRY_DELAY
            ),
            http_timeout=_positive_float(values, "http_timeout", DEFAULT_TIMEOUT),
        )

    def redacted(self) -> dict[str, Any]:
        """
        Describe the settings without secret material.

        Returns:
            Dictionary safe to print or log
        """
        return {
            "environment": self.environment.value,
            "entra_tenant_id": self.entra_tenant_id,
            "entra_client_id": self.entra_client_id,
            "entra_client_certificate": "<redacted>",
            "google_delegated_user": self.google_delegated_user,
            "google_service_account_json": "<redacted>",
            "delete_removed_contacts": self.delete_removed_contacts,
        }


def _positive_int(values: Mapping[str, Any], key: str, default: int) -> int:
    value = values.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError(
            f"{key} must be an integer, got {type(value).__name__}"
        )
    if value < 1:
        raise SettingsError(f"{key} must be >= 1, got {value}")
    return value


def _positive_float(values: Mapping[str, Any], key: str, default: float) -> float:
    value = values.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsError(
            f"{key} must be a number, got {type(value).__name__}"
        )
    if value <= 0:
        raise SettingsError(f"{key} must be > 0, got {value}")
    return float(value)


def load_settings(
    config_file: Path | str | None = None,
    secret_id: str = CONFIG_SECRET,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load and validate settings for a sync run.

    Reads the YAML file when one is given, otherwise the Secrets Manager
    secret.

    Args:
        config_file: Optional local YAML configuration file
        secret_id: Secrets Manager secret name or ARN
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated Settings

    Raises:
        SettingsError: If the configuration cannot be loaded or is invalid
    """
    if environ is None:
        environ = os.environ

    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            raise SettingsError(f"Configuration file not found: {path}")
        loader = ConfigLoader(config_dir=path.parent, config_file=path.name)
        try:
            data: Mapping[str, Any] | None = loader.load_and_validate()
        except ConfigError as e:
            raise SettingsError(str(e)) from e
        source = str(path)
    else:
        data = get_secrets(secret_id)
        source = f"secret {secret_id}"

    if not data:
        raise SettingsError(f"Failed to load configuration from {source}")

    settings = Settings.from_dict(data, environ.get(ENV_RUN_ENVIRONMENT))
    logger.info(
        f'Configuration loaded successfully for "{settings.environment.value}" '
        f"environment"
    )
    return settings
