"""
Record models for directory synchronization.

Provides the two record shapes joined during a sync:
- DirectoryUser: an enabled Entra ID user (the source of truth)
- SharedContact: an existing Google Workspace domain shared contact

The shapes are deliberately independent. They are only ever compared
through their lookup keys and an explicit field-by-field check in the
sync engine.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Optional, Protocol, TypeVar

from gsuite_dirsync.utils.names import parse_display_name
from gsuite_dirsync.utils.normalization import lookup_key

# XML namespaces used by the GData contacts feed
ATOM_NS = "http://www.w3.org/2005/Atom"
GD_NS = "http://schemas.google.com/g/2005"

# Kind category marking an Atom entry as a contact
CONTACT_KIND_SCHEME = "http://schemas.google.com/g/2005#kind"
CONTACT_KIND_TERM = "http://schemas.google.com/contact/2008#contact"

# Email relation types
REL_WORK = "http://schemas.google.com/g/2005#work"
REL_OTHER = "http://schemas.google.com/g/2005#other"

ET.register_namespace("atom", ATOM_NS)
ET.register_namespace("gd", GD_NS)

logger = logging.getLogger(__name__)


@dataclass
class DirectoryUser:
    """
    Identity record for an enabled user in the source directory.

    Attributes:
        email: Primary contact address (Graph ``mail``), may be empty
        upn: User principal name, used when there is no primary address
        given_name: First name
        family_name: Last name
        display_name: Full display name

    Usage:
        user = DirectoryUser.from_graph_user(graph_item)
        key = user.lookup_key()
        body = user.to_atom_entry()
    """

    email: str = ""
    upn: str = ""
    given_name: str = ""
    family_name: str = ""
    display_name: str = ""

    @classmethod
    def from_graph_user(cls, item: dict[str, Any]) -> Optional["DirectoryUser"]:
        """
        Create a DirectoryUser from a Microsoft Graph user object.

        Args:
            item: Dictionary from the Graph ``/users`` endpoint

        Returns:
            DirectoryUser, or None if the user has neither mail nor UPN

        Example Graph user::

            {
                'userPrincipalName': 'jdoe@contoso.onmicrosoft.com',
                'mail': 'john.doe@contoso.com',
                'givenName': 'John',
                'surname': 'Doe',
                'displayName': 'John Doe'
            }
        """
        mail = item.get("mail") or ""
        upn = item.get("userPrincipalName") or ""
        if not mail and not upn:
            return None

        display_name = item.get("displayName") or mail or upn
        given_name = item.get("givenName") or ""
        family_name = item.get("surname") or ""

        # Fill in whichever structured name part is missing
        if display_name and (not given_name or not family_name):
            parsed_given, parsed_family = parse_display_name(display_name)
            given_name = given_name or parsed_given
            family_name = family_name or parsed_family

        return cls(
            email=mail,
            upn=upn,
            given_name=given_name,
            family_name=family_name,
            display_name=display_name,
        )

    def lookup_key(self) -> str:
        """Return the case-insensitive key used to match this user."""
        return lookup_key(self.email, self.upn)

    def to_atom_entry(self) -> bytes:
        """
        Render this user as an Atom entry for the GData contacts feed.

        The primary email is written as a primary work address. The UPN is
        added as an "other" address when it differs from the primary email.

        Returns:
            UTF-8 encoded XML document
        """
        entry = ET.Element(f"{{{ATOM_NS}}}entry")
        ET.SubElement(
            entry,
            f"{{{ATOM_NS}}}category",
            scheme=CONTACT_KIND_SCHEME,
            term=CONTACT_KIND_TERM,
        )

        name = ET.SubElement(entry, f"{{{GD_NS}}}name")
        ET.SubElement(name, f"{{{GD_NS}}}givenName").text = self.given_name
        ET.SubElement(name, f"{{{GD_NS}}}familyName").text = self.family_name
        ET.SubElement(name, f"{{{GD_NS}}}fullName").text = self.display_name

        if self.email:
            ET.SubElement(
                entry,
                f"{{{GD_NS}}}email",
                rel=REL_WORK,
                address=self.email,
                primary="true",
            )

        if self.upn and self.upn.lower() != self.email.lower():
            ET.SubElement(entry, f"{{{GD_NS}}}email", rel=REL_OTHER, address=self.upn)

        return ET.tostring(entry, encoding="utf-8", xml_declaration=True)


@dataclass
class SharedContact:
    """
    Existing domain shared contact in the destination feed.

    Attributes:
        contact_id: Feed-assigned id, required for update and delete
        etag: Version tag echoed back in If-Match; stale tags are rejected
        email: Primary email address
        other_email: Secondary ("other") email address
        given_name: First name
        family_name: Last name
        full_name: Full name as stored on the contact
    """

    contact_id: str
    etag: str
    email: str = ""
    other_email: str = ""
    given_name: str = ""
    family_name: str = ""
    full_name: str = ""

    @classmethod
    def from_feed_entry(cls, entry: dict[str, Any]) -> Optional["SharedContact"]:
        """
        Create a SharedContact from a GData JSON (``alt=json``) feed entry.

        Args:
            entry: One element of ``feed.entry``

        Returns:
            SharedContact, or None if the entry carries no email address

        Example entry::

            {
                'id': {'$t': 'https://www.google.com/m8/feeds/contacts/x.com/base/abc'},
                'gd$etag': '"Qn04fjVSLit7I2A9XRZQE0QM"',
                'gd$name': {'gd$givenName': {'$t': 'John'}, ...},
                'gd$email': [{'address': 'john@x.com', 'primary': 'true'}]
            }
        """
        emails = entry.get("gd$email") or []
        if not emails:
            return None

        primary = next((e for e in emails if e.get("primary") == "true"), None)
        if primary is None:
            primary = next(
                (e for e in emails if not (e.get("rel") or "").endswith("#other")),
                None,
            )
        other = next(
            (e for e in emails if (e.get("rel") or "").endswith("#other")), None
        )

        email = (primary or {}).get("address", "")
        other_email = (other or {}).get("address", "")

        name = entry.get("gd$name") or {}
        entry_id = (entry.get("id") or {}).get("$t", "")

        return cls(
            contact_id=entry_id.rsplit("/", 1)[-1],
            etag=entry.get("gd$etag") or "*",
            email=email,
            other_email=other_email,
            given_name=_text(name.get("gd$givenName")),
            family_name=_text(name.get("gd$familyName")),
            full_name=_text(name.get("gd$fullName")) or email or other_email,
        )

    def lookup_key(self) -> str:
        """Return the case-insensitive key used to match this contact."""
        return lookup_key(self.email, self.other_email)


def _text(node: dict[str, Any] | None) -> str:
    """Extract the ``$t`` text value of a GData JSON node."""
    if not node:
        return ""
    return node.get("$t", "") or ""


class _Keyed(Protocol):
    def lookup_key(self) -> str: ...


RecordT = TypeVar("RecordT", bound=_Keyed)


def index_by_key(records: Iterable[RecordT]) -> dict[str, RecordT]:
    """
    Index records by lookup key in a single pass.

    When two records share a key, the one seen last replaces the earlier
    one (last write wins). Records whose key is empty cannot be matched
    and are skipped.

    Args:
        records: DirectoryUser or SharedContact records

    Returns:
        Dictionary mapping lookup key to record
    """
    index: dict[str, RecordT] = {}
    for record in records:
        key = record.lookup_key()
        if not key:
            logger.warning(f"Skipping record without an identifier: {record}")
            continue
        if key in index:
            logger.debug(f"Duplicate lookup key {key}, keeping the later record")
        index[key] = record
    return index
