"""
gsuite_dirsync.auth - Credential construction

Builds the certificate credential for Microsoft Graph and the delegated
service account credentials for the Google contacts feed.
"""

from gsuite_dirsync.auth.entra_auth import create_entra_credential
from gsuite_dirsync.auth.errors import AuthenticationError
from gsuite_dirsync.auth.google_auth import (
    authorized_session,
    create_delegated_credentials,
)

__all__ = [
    "AuthenticationError",
    "authorized_session",
    "create_delegated_credentials",
    "create_entra_credential",
]
