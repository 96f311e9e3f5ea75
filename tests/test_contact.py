"""
Tests for the DirectoryUser and SharedContact record models.
"""

import xml.etree.ElementTree as ET

from gsuite_dirsync.sync.contact import (
    ATOM_NS,
    CONTACT_KIND_TERM,
    GD_NS,
    REL_OTHER,
    REL_WORK,
    DirectoryUser,
    SharedContact,
    index_by_key,
)

FEED_BASE = "http://www.google.com/m8/feeds/contacts/example.com/base"


def make_entry(
    contact_id="abc123",
    etag='"Qn04fjVSLit7I2A9XRZQE0QM"',
    emails=None,
    given="John",
    family="Doe",
    full="John Doe",
):
    """Build a GData JSON feed entry for tests."""
    entry = {
        "id": {"$t": f"{FEED_BASE}/{contact_id}"},
        "gd$etag": etag,
        "gd$name": {
            "gd$givenName": {"$t": given},
            "gd$familyName": {"$t": family},
            "gd$fullName": {"$t": full},
        },
    }
    if emails is not None:
        entry["gd$email"] = emails
    return entry


class TestDirectoryUserFromGraph:
    """Tests for DirectoryUser.from_graph_user."""

    def test_full_user(self):
        """Test all Graph fields are mapped."""
        user = DirectoryUser.from_graph_user(
            {
                "userPrincipalName": "jdoe@corp.onmicrosoft.com",
                "mail": "John.Doe@example.com",
                "givenName": "John",
                "surname": "Doe",
                "displayName": "John Doe",
            }
        )

        assert user == DirectoryUser(
            email="John.Doe@example.com",
            upn="jdoe@corp.onmicrosoft.com",
            given_name="John",
            family_name="Doe",
            display_name="John Doe",
        )

    def test_no_mail_and_no_upn_returns_none(self):
        """Test users without any address are dropped."""
        assert DirectoryUser.from_graph_user({"displayName": "Ghost"}) is None
        assert (
            DirectoryUser.from_graph_user({"mail": None, "userPrincipalName": None})
            is None
        )

    def test_upn_only_user(self):
        """Test a user with only a UPN keeps an empty primary email."""
        user = DirectoryUser.from_graph_user(
            {
                "userPrincipalName": "svc@corp.onmicrosoft.com",
                "mail": None,
                "givenName": "Build",
                "surname": "Agent",
                "displayName": "Build Agent",
            }
        )

        assert user.email == ""
        assert user.lookup_key() == "svc@corp.onmicrosoft.com"

    def test_missing_names_are_parsed_from_display_name(self):
        """Test given/family names come from the display name when absent."""
        user = DirectoryUser.from_graph_user(
            {"mail": "jane@example.com", "displayName": "Smith, Jane"}
        )

        assert user.given_name == "Jane"
        assert user.family_name == "Smith"

    def test_present_names_are_not_overwritten(self):
        """Test only the missing name part is filled in."""
        user = DirectoryUser.from_graph_user(
            {
                "mail": "jane@example.com",
                "givenName": "Janet",
                "displayName": "Jane Smith",
            }
        )

        assert user.given_name == "Janet"
        assert user.family_name == "Smith"

    def test_display_name_falls_back_to_mail(self):
        """Test display name defaults to the mail address."""
        user = DirectoryUser.from_graph_user({"mail": "bot@example.com"})

        assert user.display_name == "bot@example.com"

    def test_lookup_key_is_lowercase_mail(self):
        user = DirectoryUser(email="Bob@Example.com", upn="bob@corp.onmicrosoft.com")
        assert user.lookup_key() == "bob@example.com"


class TestDirectoryUserAtomEntry:
    """Tests for DirectoryUser.to_atom_entry."""

    def parse(self, user):
        return ET.fromstring(user.to_atom_entry())

    def test_entry_has_contact_kind_and_names(self):
        """Test the entry is a contact with all name parts."""
        root = self.parse(
            DirectoryUser(
                email="john@example.com",
                given_name="John",
                family_name="Doe",
                display_name="John Doe",
            )
        )

        assert root.tag == f"{{{ATOM_NS}}}entry"
        category = root.find(f"{{{ATOM_NS}}}category")
        assert category.get("term") == CONTACT_KIND_TERM
        assert root.find(f"{{{GD_NS}}}name/{{{GD_NS}}}givenName").text == "John"
        assert root.find(f"{{{GD_NS}}}name/{{{GD_NS}}}familyName").text == "Doe"
        assert root.find(f"{{{GD_NS}}}name/{{{GD_NS}}}fullName").text == "John Doe"

    def test_primary_email_and_upn(self):
        """Test mail is the primary work address and UPN is an other address."""
        root = self.parse(
            DirectoryUser(email="john@example.com", upn="jdoe@corp.onmicrosoft.com")
        )

        emails = root.findall(f"{{{GD_NS}}}email")
        assert len(emails) == 2
        assert emails[0].get("address") == "john@example.com"
        assert emails[0].get("rel") == REL_WORK
        assert emails[0].get("primary") == "true"
        assert emails[1].get("address") == "jdoe@corp.onmicrosoft.com"
        assert emails[1].get("rel") == REL_OTHER
        assert emails[1].get("primary") is None

    def test_upn_equal_to_mail_is_not_duplicated(self):
        """Test a UPN matching the mail (ignoring case) is written once."""
        root = self.parse(
            DirectoryUser(email="John@example.com", upn="john@EXAMPLE.com")
        )

        assert len(root.findall(f"{{{GD_NS}}}email")) == 1

    def test_upn_only_user_has_only_other_address(self):
        """Test a user without mail gets just the UPN as other address."""
        root = self.parse(DirectoryUser(upn="svc@corp.onmicrosoft.com"))

        emails = root.findall(f"{{{GD_NS}}}email")
        assert len(emails) == 1
        assert emails[0].get("rel") == REL_OTHER

    def test_entry_is_utf8_encoded(self):
        """Test non-ASCII names survive serialization."""
        user = DirectoryUser(email="z@example.com", display_name="Zoë Ångström")
        body = user.to_atom_entry()

        assert isinstance(body, bytes)
        assert ET.fromstring(body).find(
            f"{{{GD_NS}}}name/{{{GD_NS}}}fullName"
        ).text == "Zoë Ångström"


class TestSharedContactFromFeedEntry:
    """Tests for SharedContact.from_feed_entry."""

    def test_full_entry(self):
        """Test id, etag, names, and emails are extracted."""
        contact = SharedContact.from_feed_entry(
            make_entry(
                emails=[
                    {"address": "john@example.com", "primary": "true", "rel": REL_WORK},
                    {"address": "jdoe@corp.onmicrosoft.com", "rel": REL_OTHER},
                ]
            )
        )

        assert contact == SharedContact(
            contact_id="abc123",
            etag='"Qn04fjVSLit7I2A9XRZQE0QM"',
            email="john@example.com",
            other_email="jdoe@corp.onmicrosoft.com",
            given_name="John",
            family_name="Doe",
            full_name="John Doe",
        )

    def test_entry_without_email_returns_none(self):
        """Test entries with no email address are ignored."""
        assert SharedContact.from_feed_entry(make_entry()) is None
        assert SharedContact.from_feed_entry(make_entry(emails=[])) is None

    def test_other_only_entry_has_empty_primary(self):
        """Test a contact created for a UPN-only user keys on the UPN."""
        contact = SharedContact.from_feed_entry(
            make_entry(emails=[{"address": "svc@corp.onmicrosoft.com", "rel": REL_OTHER}])
        )

        assert contact.email == ""
        assert contact.other_email == "svc@corp.onmicrosoft.com"
        assert contact.lookup_key() == "svc@corp.onmicrosoft.com"

    def test_untagged_first_address_used_when_no_primary(self):
        """Test the first non-other address is treated as primary."""
        contact = SharedContact.from_feed_entry(
            make_entry(
                emails=[
                    {"address": "alt@corp.onmicrosoft.com", "rel": REL_OTHER},
                    {"address": "main@example.com", "rel": REL_WORK},
                ]
            )
        )

        assert contact.email == "main@example.com"
        assert contact.other_email == "alt@corp.onmicrosoft.com"

    def test_missing_etag_defaults_to_wildcard(self):
        entry = make_entry(emails=[{"address": "a@example.com", "primary": "true"}])
        del entry["gd$etag"]

        assert SharedContact.from_feed_entry(entry).etag == "*"

    def test_missing_name_falls_back_to_email(self):
        """Test full name defaults to the email address."""
        entry = make_entry(emails=[{"address": "a@example.com", "primary": "true"}])
        del entry["gd$name"]

        contact = SharedContact.from_feed_entry(entry)

        assert contact.given_name == ""
        assert contact.family_name == ""
        assert contact.full_name == "a@example.com"

    def test_lookup_key_is_lowercase(self):
        contact = SharedContact(contact_id="1", etag="e", email="Bob@Example.COM")
        assert contact.lookup_key() == "bob@example.com"


class TestIndexByKey:
    """Tests for index_by_key."""

    def test_indexes_by_lowercase_key(self):
        users = [
            DirectoryUser(email="A@example.com"),
            DirectoryUser(upn="B@corp.onmicrosoft.com"),
        ]

        index = index_by_key(users)

        assert list(index) == ["a@example.com", "b@corp.onmicrosoft.com"]
        assert index["a@example.com"] is users[0]

    def test_last_record_wins_on_duplicate_key(self):
        """Test the later record replaces an earlier one with the same key."""
        first = DirectoryUser(email="dup@example.com", display_name="First")
        second = DirectoryUser(email="DUP@example.com", display_name="Second")

        index = index_by_key([first, second])

        assert len(index) == 1
        assert index["dup@example.com"] is second

    def test_records_without_key_are_skipped(self):
        index = index_by_key([DirectoryUser(display_name="Nobody")])
        assert index == {}

    def test_accepts_any_iterable(self):
        contacts = (
            SharedContact(contact_id=str(i), etag="e", email=f"u{i}@example.com")
            for i in range(3)
        )

        assert len(index_by_key(contacts)) == 3
