"""
Configuration file generator for local sync runs.

Provides functionality to generate a YAML configuration template with
documentation for every available option.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate the YAML configuration template.

    Returns:
        String containing YAML configuration with comments

    Example:
        config_yaml = generate_default_config()
        with open("config.yaml", "w") as f:
            f.write(config_yaml)
    """
    return """# Entra ID to Google Shared Contacts Sync Configuration
# =====================================================
#
# Local configuration for gsuite-dirsync. The deployed Lambda reads the
# same values (with camelCase keys) from the AWS Secrets Manager secret
# "gsuite-dirsync-config" instead.
#
# To use this configuration:
#   1. Save as ~/.gsuite-dirsync/config.yaml, where every command picks it up
#      (or in $DIRSYNC_CONFIG_DIR, or pass --config-file)
#   2. Fill in the credentials below
#   3. Set RunEnvironment=dev (or prod) and run: gsuite-dirsync sync --dry-run


# Entra ID (source directory)
# ---------------------------

# Directory (tenant) id of the Entra ID tenant
entra_tenant_id: ""

# Application (client) id of the app registration
# The app needs the User.Read.All application permission
entra_client_id: ""

# Base64-encoded PEM file holding the client certificate and private key
entra_client_certificate: ""


# Google Workspace (destination contact store)
# --------------------------------------------

# Workspace user impersonated by the service account.
# The part after "@" selects the domain whose shared contacts are synced.
google_delegated_user: ""

# Service account key (JSON text) with domain-wide delegation for
# the https://www.google.com/m8/feeds scope
google_service_account_json: ""


# Sync Behavior
# -------------

# Delete shared contacts whose user is no longer in Entra ID
# Default: true
# delete_removed_contacts: true

# Preview changes without applying them
# Default: false
# dry_run: false


# API Options
# -----------

# Users per Microsoft Graph page (max 999)
# graph_page_size: 999

# Contacts per shared contacts feed page
# contacts_page_size: 1000

# Attempts per page read before giving up on throttling/server errors
# api_max_retries: 3
# api_initial_retry_delay: 1.0
# api_max_retry_delay: 30.0

# Per-request timeout in seconds
# http_timeout: 30


# Logging Options
# ---------------

# Enable verbose output with detailed logging
# verbose: false

# Also write a DEBUG log to this file
# log_file: /tmp/gsuite-dirsync.log
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save the configuration template to the specified path.

    Creates parent directories if they don't exist and saves the file with
    owner-only permissions, since it will hold credentials.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
