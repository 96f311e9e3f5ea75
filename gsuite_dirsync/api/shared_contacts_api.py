"""
Google Domain Shared Contacts wrapper for the destination contact store.

Provides a high-level interface to the GData contacts feed of a Google
Workspace domain:
- Listing all shared contacts with start-index pagination
- Creating, updating, and deleting contacts with etag concurrency control

Write operations report success as a boolean and never raise for HTTP,
transport, or authentication failures, so one bad contact cannot stop a
sync run.
"""

import logging
from typing import Any

import requests
from google.auth.exceptions import GoogleAuthError

from gsuite_dirsync.api.pagination import paginate
from gsuite_dirsync.api.transport import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    APIError,
    send_with_retry,
)
from gsuite_dirsync.sync.contact import DirectoryUser, SharedContact, index_by_key

FEED_URL_TEMPLATE = "https://www.google.com/m8/feeds/contacts/{domain}/full"
GDATA_VERSION = "3.0"
ATOM_CONTENT_TYPE = "application/atom+xml"

# Maximum contacts per feed page
DEFAULT_PAGE_SIZE = 1000

logger = logging.getLogger(__name__)


class ContactsAPIError(APIError):
    """Raised when reading the shared contacts feed fails."""

    pass


class SharedContactsAPI:
    """
    Client for the domain shared contacts feed.

    Attributes:
        session: Authorized session carrying the delegated service account
        domain: Workspace domain whose shared contacts are managed
        feed_url: Base URL of the domain's contacts feed

    Usage:
        api = SharedContactsAPI(authorized_session(credentials), "example.com")

        # Existing contacts keyed by lookup key
        contacts = api.list_contacts()

        # Writes return True/False
        api.create_contact(user)
        api.update_contact(contact.contact_id, contact.etag, user)
        api.delete_contact(contact.contact_id, contact.etag, key)
    """

    def __init__(
        self,
        session: requests.Session,
        domain: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the shared contacts client.

        Args:
            session: google-auth AuthorizedSession (any requests.Session works)
            domain: Workspace domain, e.g. "example.com"
            page_size: Contacts requested per feed page
            max_retries: Attempts per page request
            initial_retry_delay: Initial backoff delay in seconds
            max_retry_delay: Maximum backoff delay in seconds
            timeout: Per-request timeout in seconds
        """
        self.session = session
        self.domain = domain
        self.page_size = page_size
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.timeout = timeout
        self.feed_url = FEED_URL_TEMPLATE.format(domain=domain)

    def _contact_url(self, contact_id: str) -> str:
        return f"{self.feed_url}/{contact_id}"

    def _headers(self, etag: str | None = None, body: bool = False) -> dict[str, str]:
        headers = {"GData-Version": GDATA_VERSION}
        if body:
            headers["Content-Type"] = ATOM_CONTENT_TYPE
        if etag:
            headers["If-Match"] = etag
        return headers

    def _fetch_page(self, start_index: int) -> tuple[list[SharedContact], int | None]:
        """
        Fetch one page of the contacts feed.

        Args:
            start_index: 1-based index of the first entry on the page

        Returns:
            Tuple of (contacts on this page, next start index or None)

        Raises:
            ContactsAPIError: If the page cannot be fetched
        """
        params: dict[str, Any] = {
            "max-results": self.page_size,
            "start-index": start_index,
            "alt": "json",
        }
        logger.debug(f"Fetching contacts page starting at {start_index}")

        def execute_get() -> requests.Response:
            return self.session.get(
                self.feed_url,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )

        try:
            response = send_with_retry(
                execute_get,
                "list_contacts",
                max_retries=self.max_retries,
                initial_retry_delay=self.initial_retry_delay,
                max_retry_delay=self.max_retry_delay,
            )
        except (APIError, GoogleAuthError) as e:
            raise ContactsAPIError(f"Failed to fetch contacts: {e}") from e

        if not response.ok:
            logger.error(
                f"Failed to fetch domain contacts ({response.status_code}): "
                f"{response.text}"
            )
            raise ContactsAPIError(
                f"Failed to fetch contacts: {response.status_code} {response.reason}"
            )

        entries = (response.json().get("feed") or {}).get("entry") or []
        logger.debug(f"Page at {start_index} has {len(entries)} entries")

        contacts = []
        for entry in entries:
            contact = SharedContact.from_feed_entry(entry)
            if contact is not None:
                contacts.append(contact)

        # A short (or empty) page is the last one
        if len(entries) < self.page_size:
            return contacts, None
        return contacts, start_index + self.page_size

    def list_contacts(self) -> dict[str, SharedContact]:
        """
        List all shared contacts of the domain.

        Returns:
            Dictionary mapping lookup key to SharedContact. Duplicate keys
            keep the contact seen last.

        Raises:
            ContactsAPIError: If any page fails; no partial map is returned
        """
        logger.info(f"Fetching domain shared contacts for {self.domain}")
        contacts = index_by_key(paginate(self._fetch_page, 1))
        logger.info(f"Fetched {len(contacts)} domain shared contacts")
        return contacts

    def _send_write(
        self,
        method: str,
        url: str,
        operation: str,
        key: str,
        etag: str | None = None,
        body: bytes | None = None,
    ) -> bool:
        """
        Send a single write request and report the outcome.

        Args:
            method: HTTP method
            url: Target URL
            operation: Verb used in log messages ("create", "update", "delete")
            key: Lookup key of the contact, for log messages
            etag: Version tag for If-Match, if any
            body: Atom XML payload, if any

        Returns:
            True on a 2xx response, False otherwise
        """
        try:
            response = self.session.request(
                method,
                url,
                data=body,
                headers=self._headers(etag=etag, body=body is not None),
                timeout=self.timeout,
            )
        except (requests.RequestException, GoogleAuthError) as e:
            logger.error(f"Error trying to {operation} contact {key}: {e}")
            return False

        if response.status_code == 412:
            logger.error(
                f"Failed to {operation} contact {key}: version conflict "
                f"(etag {etag} is stale)"
            )
            return False

        if not response.ok:
            logger.error(
                f"Failed to {operation} contact {key} "
                f"({response.status_code}): {response.text}"
            )
            return False

        logger.info(f"{operation.capitalize()}d domain shared contact {key}")
        return True

    def create_contact(self, user: DirectoryUser) -> bool:
        """
        Create a new shared contact.

        Args:
            user: Directory user to create a contact for

        Returns:
            True if the contact was created
        """
        return self._send_write(
            "POST",
            self.feed_url,
            "create",
            user.lookup_key(),
            body=user.to_atom_entry(),
        )

    def update_contact(self, contact_id: str, etag: str, user: DirectoryUser) -> bool:
        """
        Replace an existing shared contact with the user's current fields.

        Args:
            contact_id: Id of the contact to update
            etag: Version tag read with the contact
            user: Directory user whose fields are written

        Returns:
            True if the contact was updated; False on any failure,
            including a stale etag
        """
        return self._send_write(
            "PUT",
            self._contact_url(contact_id),
            "update",
            user.lookup_key(),
            etag=etag,
            body=user.to_atom_entry(),
        )

    def delete_contact(self, contact_id: str, etag: str, key: str) -> bool:
        """
        Delete a shared contact.

        Args:
            contact_id: Id of the contact to delete
            etag: Version tag read with the contact
            key: Lookup key of the contact, for log messages

        Returns:
            True if the contact was deleted
        """
        return self._send_write(
            "DELETE",
            self._contact_url(contact_id),
            "delete",
            key,
            etag=etag,
        )
