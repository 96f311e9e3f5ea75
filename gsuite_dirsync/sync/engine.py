"""
Sync engine for one-way directory to shared contacts synchronization.

Computes the create/update/delete plan that makes the destination contact
store mirror the source directory, then applies it one operation at a
time. The source always wins; there is no field-level merge.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from gsuite_dirsync.sync.contact import DirectoryUser, SharedContact, index_by_key

logger = logging.getLogger(__name__)


class ContactStore(Protocol):
    """Write operations the engine needs from the destination store."""

    def create_contact(self, user: DirectoryUser) -> bool: ...

    def update_contact(
        self, contact_id: str, etag: str, user: DirectoryUser
    ) -> bool: ...

    def delete_contact(self, contact_id: str, etag: str, key: str) -> bool: ...


@dataclass
class ContactUpdate:
    """An existing contact to overwrite with the source user's fields."""

    contact_id: str
    etag: str
    user: DirectoryUser


@dataclass
class ContactDeletion:
    """An existing contact whose user is no longer in the source."""

    contact_id: str
    etag: str
    key: str


@dataclass
class SyncPlan:
    """
    Operations required to bring the destination in line with the source.

    The three lists are disjoint by lookup key.
    """

    to_create: list[DirectoryUser] = field(default_factory=list)
    to_update: list[ContactUpdate] = field(default_factory=list)
    to_delete: list[ContactDeletion] = field(default_factory=list)

    def has_changes(self) -> bool:
        """Check if there are any changes to apply."""
        return bool(self.to_create or self.to_update or self.to_delete)

    def summary(self) -> str:
        return (
            f"create={len(self.to_create)}, "
            f"update={len(self.to_update)}, "
            f"delete={len(self.to_delete)}"
        )


@dataclass
class SyncStats:
    """
    Statistics from a sync operation.

    Every executed operation increments exactly one of created, updated,
    deleted, or errors.
    """

    total_source_records: int = 0
    total_destination_records: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to the camelCase shape returned to the caller."""
        return {
            "totalSourceRecords": self.total_source_records,
            "totalDestinationRecords": self.total_destination_records,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "errors": self.errors,
        }


@dataclass
class SyncResult:
    """Result of a sync run: the plan that was computed and what happened."""

    plan: SyncPlan
    stats: SyncStats
    dry_run: bool = False

    def summary(
        self, source_label: str = "Entra ID", destination_label: str = "Google"
    ) -> str:
        """
        Generate a human-readable summary of the sync result.

        Args:
            source_label: Label for the source directory
            destination_label: Label for the destination contact store

        Returns:
            Formatted string summary of sync operations
        """
        stats = self.stats
        lines = [
            "Sync Summary:",
            f"  {source_label}: {stats.total_source_records} users",
            f"  {destination_label}: {stats.total_destination_records} contacts",
            "",
        ]

        if self.dry_run:
            lines.extend(
                [
                    "Changes to apply (dry run, nothing written):",
                    f"  Create: {len(self.plan.to_create)}",
                    f"  Update: {len(self.plan.to_update)}",
                    f"  Delete: {len(self.plan.to_delete)}",
                ]
            )
        else:
            lines.extend(
                [
                    "Changes applied:",
                    f"  Created: {stats.created}",
                    f"  Updated: {stats.updated}",
                    f"  Deleted: {stats.deleted}",
                    f"  Errors: {stats.errors}",
                ]
            )

        return "\n".join(lines)


def contact_differs(user: DirectoryUser, contact: SharedContact) -> bool:
    """
    Check whether a matched contact needs to be rewritten.

    Compares given name, family name, display name and primary email
    exactly (case-sensitive). Only the lookup key is case-insensitive.
    """
    return (
        user.given_name != contact.given_name
        or user.family_name != contact.family_name
        or user.display_name != contact.full_name
        or user.email != contact.email
    )


class SyncEngine:
    """
    One-way sync engine from directory users to domain shared contacts.

    Usage:
        engine = SyncEngine(store=SharedContactsAPI(session, domain))

        # Plan only
        plan = engine.plan(users, contacts)

        # Plan and apply
        result = engine.sync(users, contacts)
        print(result.stats.to_dict())
    """

    def __init__(self, store: ContactStore, delete_removed: bool = True):
        """
        Initialize the sync engine.

        Args:
            store: Destination store performing create/update/delete
            delete_removed: Delete contacts whose user left the directory
        """
        self.store = store
        self.delete_removed = delete_removed

    def plan(
        self,
        users: Iterable[DirectoryUser],
        contacts: Mapping[str, SharedContact],
    ) -> SyncPlan:
        """
        Compute the operations needed to mirror users into contacts.

        Pure: performs no I/O.

        Args:
            users: Source directory users
            contacts: Existing contacts keyed by lookup key

        Returns:
            SyncPlan with creates, updates, and (if enabled) deletes
        """
        source = index_by_key(users)
        plan = SyncPlan()

        for key, user in source.items():
            existing = contacts.get(key)
            if existing is None:
                plan.to_create.append(user)
            elif contact_differs(user, existing):
                plan.to_update.append(
                    ContactUpdate(
                        contact_id=existing.contact_id,
                        etag=existing.etag,
                        user=user,
                    )
                )

        if self.delete_removed:
            for key, contact in contacts.items():
                if key not in source:
                    plan.to_delete.append(
                        ContactDeletion(
                            contact_id=contact.contact_id,
                            etag=contact.etag,
                            key=key,
                        )
                    )

        logger.info(f"Sync plan calculated: {plan.summary()}")
        return plan

    def execute(self, plan: SyncPlan, stats: SyncStats | None = None) -> SyncStats:
        """
        Apply a plan: all creates, then all updates, then all deletes.

        A failed operation is counted in stats.errors and does not stop the
        remaining operations. Nothing is rolled back.

        Args:
            plan: Plan from plan()
            stats: Stats to update (a new SyncStats if None)

        Returns:
            The updated SyncStats
        """
        if stats is None:
            stats = SyncStats()

        for user in plan.to_create:
            if self._apply(
                "create", user.lookup_key(), self.store.create_contact, user
            ):
                stats.created += 1
            else:
                stats.errors += 1

        for update in plan.to_update:
            if self._apply(
                "update",
                update.user.lookup_key(),
                self.store.update_contact,
                update.contact_id,
                update.etag,
                update.user,
            ):
                stats.updated += 1
            else:
                stats.errors += 1

        for deletion in plan.to_delete:
            if self._apply(
                "delete",
                deletion.key,
                self.store.delete_contact,
                deletion.contact_id,
                deletion.etag,
                deletion.key,
            ):
                stats.deleted += 1
            else:
                stats.errors += 1

        logger.info(
            f"Sync complete: created {stats.created}, updated {stats.updated}, "
            f"deleted {stats.deleted}, errors {stats.errors}"
        )
        return stats

    def _apply(
        self, operation: str, key: str, call: Callable[..., bool], *args: object
    ) -> bool:
        """Run one store call, treating an exception as a failure."""
        try:
            return bool(call(*args))
        except Exception as e:
            logger.error(f"Unexpected error during {operation} of {key}: {e}")
            return False

    def sync(
        self,
        users: list[DirectoryUser],
        contacts: Mapping[str, SharedContact],
        dry_run: bool = False,
    ) -> SyncResult:
        """
        Plan and (unless dry_run) apply a sync.

        Args:
            users: Source directory users
            contacts: Existing contacts keyed by lookup key
            dry_run: If True, compute the plan without writing anything

        Returns:
            SyncResult with the plan and statistics
        """
        logger.info(f"Starting contact sync (dry_run={dry_run})")

        stats = SyncStats(
            total_source_records=len(users),
            total_destination_records=len(contacts),
        )
        plan = self.plan(users, contacts)

        if not dry_run and plan.has_changes():
            self.execute(plan, stats)

        return SyncResult(plan=plan, stats=stats, dry_run=dry_run)

    def __repr__(self) -> str:
        return f"SyncEngine(store={self.store!r}, delete_removed={self.delete_removed})"
