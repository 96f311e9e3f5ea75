"""
Microsoft Graph wrapper for reading the source directory.

Provides a read-only interface to the Graph ``/users`` endpoint:
- Listing every enabled user with transparent pagination
- Normalizing Graph user objects into DirectoryUser records
- Exponential backoff retry for throttled or failing page requests
"""

import logging
from typing import Any

import requests
from azure.core.credentials import TokenCredential
from azure.core.exceptions import ClientAuthenticationError

from gsuite_dirsync.api.pagination import paginate
from gsuite_dirsync.api.transport import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    APIError,
    send_with_retry,
)
from gsuite_dirsync.sync.contact import DirectoryUser

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"

# User fields requested from Graph
USER_SELECT_FIELDS = ",".join(
    ["userPrincipalName", "mail", "givenName", "surname", "displayName"]
)

# Only enabled accounts are mirrored
USER_FILTER = "accountEnabled eq true"

# Graph allows at most 999 users per page
DEFAULT_PAGE_SIZE = 999
MAX_PAGE_SIZE = 999

logger = logging.getLogger(__name__)


class DirectoryAPIError(APIError):
    """Raised when reading the source directory fails."""

    pass


class GraphAPI:
    """
    Microsoft Graph client for listing directory users.

    Attributes:
        credential: azure-identity credential used to obtain bearer tokens
        session: requests session used for all Graph calls

    Usage:
        api = GraphAPI(create_entra_credential(tenant, client, cert))
        users = api.list_users()
    """

    def __init__(
        self,
        credential: TokenCredential,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """
        Initialize the Graph client.

        Args:
            credential: Credential able to issue tokens for GRAPH_SCOPE
            page_size: Users per page (capped at 999)
            max_retries: Attempts per page request
            initial_retry_delay: Initial backoff delay in seconds
            max_retry_delay: Maximum backoff delay in seconds
            timeout: Per-request timeout in seconds
            session: Optional requests session (a new one is created if None)
        """
        self.credential = credential
        self.page_size = min(page_size, MAX_PAGE_SIZE)
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        """
        Build request headers with a fresh bearer token.

        Raises:
            DirectoryAPIError: If a token cannot be obtained
        """
        try:
            token = self.credential.get_token(GRAPH_SCOPE)
        except ClientAuthenticationError as e:
            raise DirectoryAPIError(f"Failed to get Graph access token: {e}") from e

        return {
            "Authorization": f"Bearer {token.token}",
            "Accept": "application/json",
        }

    def _first_page_url(self) -> str:
        """Build the URL of the first /users page."""
        request = requests.Request(
            "GET",
            f"{GRAPH_BASE_URL}/users",
            params={
                "$select": USER_SELECT_FIELDS,
                "$filter": USER_FILTER,
                "$top": self.page_size,
            },
        ).prepare()
        return str(request.url)

    def _fetch_page(self, url: str) -> tuple[list[DirectoryUser], str | None]:
        """
        Fetch one page of users.

        Args:
            url: Page URL (the first page URL or an @odata.nextLink)

        Returns:
            Tuple of (users on this page, next page URL or None)

        Raises:
            DirectoryAPIError: If the page cannot be fetched
        """
        logger.debug(f"Fetching users page: {url}")
        headers = self._headers()

        def execute_get() -> requests.Response:
            return self.session.get(url, headers=headers, timeout=self.timeout)

        try:
            response = send_with_retry(
                execute_get,
                "list_users",
                max_retries=self.max_retries,
                initial_retry_delay=self.initial_retry_delay,
                max_retry_delay=self.max_retry_delay,
            )
        except APIError as e:
            raise DirectoryAPIError(str(e)) from e

        if not response.ok:
            logger.error(
                f"Failed to fetch users ({response.status_code}): {response.text}"
            )
            raise DirectoryAPIError(
                f"Failed to fetch users: {response.status_code} {response.reason}"
            )

        data: dict[str, Any] = response.json()

        users = []
        skipped = 0
        for item in data.get("value", []):
            user = DirectoryUser.from_graph_user(item)
            if user is None:
                skipped += 1
                continue
            users.append(user)

        if skipped:
            logger.debug(f"Skipped {skipped} users without mail or UPN")

        return users, data.get("@odata.nextLink")

    def list_users(self) -> list[DirectoryUser]:
        """
        List every enabled user in the directory.

        Follows @odata.nextLink until exhausted. Users with neither a mail
        address nor a UPN are dropped.

        Returns:
            List of DirectoryUser records

        Raises:
            DirectoryAPIError: If any page fails; no partial list is returned
        """
        logger.info("Fetching users from Entra ID")
        users = list(paginate(self._fetch_page, self._first_page_url()))
        logger.info(f"Fetched {len(users)} users from Entra ID")
        return users
