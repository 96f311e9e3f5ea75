"""
Tests for the Google domain shared contacts client.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from google.auth.exceptions import RefreshError

from gsuite_dirsync.api.shared_contacts_api import (
    ATOM_CONTENT_TYPE,
    GDATA_VERSION,
    ContactsAPIError,
    SharedContactsAPI,
)
from gsuite_dirsync.sync.contact import REL_OTHER, DirectoryUser

FEED_URL = "https://www.google.com/m8/feeds/contacts/example.com/full"


def make_response(status_code=200, payload=None, text=""):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.reason = "Reason"
    response.text = text
    response.json.return_value = payload or {}
    return response


def feed_entry(contact_id, address, rel=None, primary=True, full="Name"):
    email = {"address": address}
    if primary:
        email["primary"] = "true"
    if rel:
        email["rel"] = rel
    return {
        "id": {"$t": f"http://www.google.com/m8/feeds/contacts/example.com/base/{contact_id}"},
        "gd$etag": f'"etag-{contact_id}"',
        "gd$name": {"gd$fullName": {"$t": full}},
        "gd$email": [email],
    }


def feed_page(entries):
    return {"feed": {"entry": entries}}


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def api(session):
    return SharedContactsAPI(session, "example.com", page_size=2, max_retries=2)


class TestSharedContactsAPIInit:
    """Tests for SharedContactsAPI construction."""

    def test_feed_url_uses_domain(self, api):
        assert api.feed_url == FEED_URL

    def test_headers(self, api):
        assert api._headers() == {"GData-Version": GDATA_VERSION}
        assert api._headers(etag='"e"', body=True) == {
            "GData-Version": GDATA_VERSION,
            "Content-Type": ATOM_CONTENT_TYPE,
            "If-Match": '"e"',
        }


class TestListContacts:
    """Tests for SharedContactsAPI.list_contacts."""

    def test_single_short_page(self, api, session):
        session.get.return_value = make_response(
            payload=feed_page([feed_entry("c1", "Ann@Example.com")])
        )

        contacts = api.list_contacts()

        assert list(contacts) == ["ann@example.com"]
        assert contacts["ann@example.com"].contact_id == "c1"
        assert contacts["ann@example.com"].etag == '"etag-c1"'
        kwargs = session.get.call_args.kwargs
        assert kwargs["params"] == {"max-results": 2, "start-index": 1, "alt": "json"}
        assert kwargs["headers"]["GData-Version"] == "3.0"

    def test_pages_until_short_page(self, api, session):
        """Test start-index advances by page size until a short page."""
        session.get.side_effect = [
            make_response(
                payload=feed_page(
                    [feed_entry("c1", "a@example.com"), feed_entry("c2", "b@example.com")]
                )
            ),
            make_response(payload=feed_page([feed_entry("c3", "c@example.com")])),
        ]

        contacts = api.list_contacts()

        assert sorted(contacts) == ["a@example.com", "b@example.com", "c@example.com"]
        starts = [c.kwargs["params"]["start-index"] for c in session.get.call_args_list]
        assert starts == [1, 3]

    def test_full_last_page_then_empty_page(self, api, session):
        session.get.side_effect = [
            make_response(
                payload=feed_page(
                    [feed_entry("c1", "a@example.com"), feed_entry("c2", "b@example.com")]
                )
            ),
            make_response(payload={"feed": {}}),
        ]

        assert len(api.list_contacts()) == 2
        assert session.get.call_count == 2

    def test_empty_feed(self, api, session):
        session.get.return_value = make_response(payload={"feed": {}})
        assert api.list_contacts() == {}

    def test_entries_without_email_are_skipped(self, api, session):
        entry = feed_entry("c1", "a@example.com")
        del entry["gd$email"]
        session.get.return_value = make_response(payload=feed_page([entry]))

        assert api.list_contacts() == {}

    def test_other_only_contact_keyed_by_other_address(self, api, session):
        session.get.return_value = make_response(
            payload=feed_page(
                [feed_entry("c1", "svc@corp.onmicrosoft.com", rel=REL_OTHER, primary=False)]
            )
        )

        contacts = api.list_contacts()

        assert list(contacts) == ["svc@corp.onmicrosoft.com"]
        assert contacts["svc@corp.onmicrosoft.com"].email == ""

    def test_duplicate_key_keeps_later_contact(self, api, session):
        session.get.return_value = make_response(
            payload=feed_page(
                [feed_entry("c1", "dup@example.com"), feed_entry("c2", "DUP@example.com")]
            )
        )
        api.page_size = 10

        contacts = api.list_contacts()

        assert contacts["dup@example.com"].contact_id == "c2"

    def test_http_error_raises(self, api, session):
        session.get.return_value = make_response(403, text="Forbidden")

        with pytest.raises(ContactsAPIError, match="403"):
            api.list_contacts()

    def test_auth_error_raises(self, api, session):
        session.get.side_effect = RefreshError("unauthorized_client")

        with pytest.raises(ContactsAPIError, match="unauthorized_client"):
            api.list_contacts()

    @patch("gsuite_dirsync.api.transport.time.sleep")
    def test_server_error_is_retried(self, mock_sleep, api, session):
        session.get.side_effect = [
            make_response(503),
            make_response(payload=feed_page([feed_entry("c1", "a@example.com")])),
        ]

        assert len(api.list_contacts()) == 1


class TestWrites:
    """Tests for create_contact, update_contact and delete_contact."""

    @pytest.fixture
    def user(self):
        return DirectoryUser(
            email="ann@example.com",
            upn="ann@corp.onmicrosoft.com",
            given_name="Ann",
            family_name="Lee",
            display_name="Ann Lee",
        )

    def test_create_posts_atom_entry(self, api, session, user):
        session.request.return_value = make_response(201)

        assert api.create_contact(user) is True

        args = session.request.call_args
        assert args.args == ("POST", FEED_URL)
        assert args.kwargs["data"] == user.to_atom_entry()
        assert args.kwargs["headers"]["Content-Type"] == ATOM_CONTENT_TYPE
        assert "If-Match" not in args.kwargs["headers"]

    def test_update_puts_with_if_match(self, api, session, user):
        session.request.return_value = make_response(200)

        assert api.update_contact("c1", '"etag-c1"', user) is True

        args = session.request.call_args
        assert args.args == ("PUT", f"{FEED_URL}/c1")
        assert args.kwargs["headers"]["If-Match"] == '"etag-c1"'
        assert args.kwargs["data"] == user.to_atom_entry()

    def test_delete_sends_if_match_without_body(self, api, session):
        session.request.return_value = make_response(200)

        assert api.delete_contact("c1", '"etag-c1"', "ann@example.com") is True

        args = session.request.call_args
        assert args.args == ("DELETE", f"{FEED_URL}/c1")
        assert args.kwargs["data"] is None
        assert args.kwargs["headers"]["If-Match"] == '"etag-c1"'
        assert "Content-Type" not in args.kwargs["headers"]

    def test_stale_etag_returns_false(self, api, session, user):
        session.request.return_value = make_response(412, text="Precondition Failed")

        assert api.update_contact("c1", '"old"', user) is False

    def test_http_error_returns_false(self, api, session, user):
        session.request.return_value = make_response(400, text="Bad Request")

        assert api.create_contact(user) is False

    def test_server_error_is_not_retried(self, api, session, user):
        """Test writes are sent once even on a 5xx response."""
        session.request.return_value = make_response(503)

        assert api.create_contact(user) is False
        session.request.assert_called_once()

    def test_transport_error_returns_false(self, api, session):
        session.request.side_effect = requests.ConnectionError("reset")

        assert api.delete_contact("c1", "e", "ann@example.com") is False

    def test_auth_error_returns_false(self, api, session, user):
        session.request.side_effect = RefreshError("token expired")

        assert api.update_contact("c1", "e", user) is False
