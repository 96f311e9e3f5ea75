"""
Google service account authentication for the domain shared contacts feed.

The Domain Shared Contacts API only accepts requests made on behalf of a
Workspace user, so the service account uses domain-wide delegation to
impersonate the configured delegated user.
"""

import json
import logging

from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from gsuite_dirsync.auth.errors import AuthenticationError

# OAuth2 scope for the GData contacts feeds
SCOPES = ["https://www.google.com/m8/feeds"]

logger = logging.getLogger(__name__)


def create_delegated_credentials(
    service_account_json: str, delegated_user: str
) -> service_account.Credentials:
    """
    Create service account credentials that impersonate a Workspace user.

    Args:
        service_account_json: Service account key file contents (JSON text)
        delegated_user: Email address of the user to impersonate

    Returns:
        Delegated service account credentials

    Raises:
        AuthenticationError: If the key is not valid JSON or not a usable
            service account key
    """
    try:
        info = json.loads(service_account_json)
    except json.JSONDecodeError as e:
        raise AuthenticationError(
            f"Google service account key is not valid JSON: {e}"
        ) from e

    try:
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=SCOPES, subject=delegated_user
        )
    except (ValueError, KeyError) as e:
        raise AuthenticationError(
            f"Invalid Google service account key: {e}"
        ) from e

    logger.debug(f"Created delegated credentials for {delegated_user}")
    return credentials


def authorized_session(
    credentials: service_account.Credentials,
) -> AuthorizedSession:
    """
    Wrap credentials in a requests session that refreshes tokens as needed.

    Args:
        credentials: Google credentials

    Returns:
        AuthorizedSession usable as a requests.Session
    """
    return AuthorizedSession(credentials)
