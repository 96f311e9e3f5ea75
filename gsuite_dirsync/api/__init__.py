"""
gsuite_dirsync.api - Remote directory clients

Contains the Microsoft Graph user reader and the Google domain shared
contacts client, plus the pagination and retry helpers they share.
"""

from gsuite_dirsync.api.graph_api import DirectoryAPIError, GraphAPI
from gsuite_dirsync.api.shared_contacts_api import ContactsAPIError, SharedContactsAPI
from gsuite_dirsync.api.transport import APIError, RateLimitError

__all__ = [
    "APIError",
    "RateLimitError",
    "GraphAPI",
    "DirectoryAPIError",
    "SharedContactsAPI",
    "ContactsAPIError",
]
