"""Access rules for file records.

There is no sharing: owners may do anything with their files, everyone
else (including anonymous requesters) may only read public ones.
"""

from dataclasses import dataclass

from server.apps.files.models import File


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """Authenticated requester, as resolved from a token."""

    id: int


def can_read(file_record: File, identity: UserIdentity | None) -> bool:
    """Check if the requester may see a file and its content.

    Args:
        file_record: File being accessed.
        identity: Requester, None when anonymous.

    Returns:
        True for public files and for the owner.
    """
    if file_record.is_public:
        return True
    return can_write(file_record, identity)


def can_write(file_record: File, identity: UserIdentity | None) -> bool:
    """Check if the requester may change a file (e.g. publish it).

    Args:
        file_record: File being accessed.
        identity: Requester, None when anonymous.

    Returns:
        True only for the owner.
    """
    return identity is not None and file_record.user_id == identity.id
