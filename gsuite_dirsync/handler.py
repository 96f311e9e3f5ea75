"""
Sync orchestration and the AWS Lambda entry point.

A run fetches every enabled Entra ID user and every domain shared contact,
then lets the SyncEngine bring the contacts in line with the users. The
Lambda is fired by an EventBridge schedule; the event payload is ignored.

Usage:
    # Lambda
    handler = gsuite_dirsync.handler.handler

    # Programmatic
    settings = load_settings(config_file="config.yaml")
    result = run_sync(settings, dry_run=True)
    print(result.summary())
"""

import json
import logging
from typing import Any

from gsuite_dirsync.api.graph_api import GraphAPI
from gsuite_dirsync.api.shared_contacts_api import SharedContactsAPI
from gsuite_dirsync.auth import (
    authorized_session,
    create_delegated_credentials,
    create_entra_credential,
)
from gsuite_dirsync.config.settings import Settings, SettingsError, load_settings
from gsuite_dirsync.sync.engine import SyncEngine, SyncResult
from gsuite_dirsync.utils.logging import is_logging_configured, setup_logging

logger = logging.getLogger(__name__)


def extract_domain(email: str) -> str:
    """
    Get the domain part of an email address.

    Args:
        email: Email address, e.g. "admin@example.com"

    Returns:
        Text after the last "@"

    Raises:
        SettingsError: If there is no "@" or nothing follows it
    """
    _, at, domain = email.rpartition("@")
    if not at or not domain:
        raise SettingsError(f"Invalid google_delegated_user email: {email}")
    return domain


def build_graph_api(settings: Settings) -> GraphAPI:
    """Create the Graph client from the Entra ID credentials in settings."""
    credential = create_entra_credential(
        settings.entra_tenant_id,
        settings.entra_client_id,
        settings.entra_client_certificate,
    )
    return GraphAPI(
        credential,
        page_size=settings.graph_page_size,
        max_retries=settings.api_max_retries,
        initial_retry_delay=settings.api_initial_retry_delay,
        max_retry_delay=settings.api_max_retry_delay,
        timeout=settings.http_timeout,
    )


def build_contacts_api(settings: Settings, domain: str) -> SharedContactsAPI:
    """Create the shared contacts client for the delegated user's domain."""
    credentials = create_delegated_credentials(
        settings.google_service_account_json, settings.google_delegated_user
    )
    return SharedContactsAPI(
        authorized_session(credentials),
        domain,
        page_size=settings.contacts_page_size,
        max_retries=settings.api_max_retries,
        initial_retry_delay=settings.api_initial_retry_delay,
        max_retry_delay=settings.api_max_retry_delay,
        timeout=settings.http_timeout,
    )


def run_sync(
    settings: Settings,
    dry_run: bool = False,
    graph_api: GraphAPI | None = None,
    contacts_api: SharedContactsAPI | None = None,
) -> SyncResult:
    """
    Run one complete sync.

    The domain is derived before any client is built, so a malformed
    delegated user fails without touching either API.

    Args:
        settings: Validated settings
        dry_run: If True, compute the plan without writing
        graph_api: Graph client to use instead of one built from settings
        contacts_api: Contacts client to use instead of one built from settings

    Returns:
        SyncResult with the plan and statistics

    Raises:
        SettingsError: If the delegated user has no domain
        AuthenticationError: If credentials cannot be built
        DirectoryAPIError: If users cannot be listed
        ContactsAPIError: If contacts cannot be listed
    """
    domain = extract_domain(settings.google_delegated_user)
    logger.info(
        f"Syncing Entra ID users to shared contacts of {domain} "
        f"({settings.environment.value})"
    )

    if graph_api is None:
        graph_api = build_graph_api(settings)
    users = graph_api.list_users()

    if contacts_api is None:
        contacts_api = build_contacts_api(settings, domain)
    contacts = contacts_api.list_contacts()

    engine = SyncEngine(contacts_api, delete_removed=settings.delete_removed_contacts)
    return engine.sync(users, contacts, dry_run=dry_run)


def handler(event: Any, context: Any = None) -> dict[str, Any]:
    """
    AWS Lambda entry point.

    Args:
        event: Scheduled event (ignored)
        context: Lambda context (ignored)

    Returns:
        Response with statusCode 200 and the sync statistics, or
        statusCode 500 and the error message
    """
    if not is_logging_configured():
        setup_logging(use_colors=False)

    logger.info("Starting Entra ID to Google shared contacts sync")

    try:
        settings = load_settings()
        result = run_sync(settings)
    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        return {
            "statusCode": 500,
            "body": json.dumps({"message": "Sync failed", "error": str(e)}),
        }

    logger.info(f"Sync completed: {json.dumps(result.stats.to_dict())}")
    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "Sync completed successfully",
                "environment": settings.environment.value,
                "stats": result.stats.to_dict(),
            }
        ),
    }
