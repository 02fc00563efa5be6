"""Folder containment rules.

A record may only be created inside an existing folder. Parents are
never changed afterwards, so every parent chain ends at the root and no
cycle check is needed.
"""

import enum
import logging
from typing import TYPE_CHECKING, Final

from server.apps.files.exceptions import FileValidationError
from server.apps.files.models import File, FileKind

if TYPE_CHECKING:
    from server.apps.files.logic.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

# Request values meaning "no containing folder"
_ROOT_VALUES: Final = (None, '', 0, '0')


def is_plain_number(raw_value: str) -> bool:
    """Check that a string holds only ASCII digits.

    ``str.isdigit`` alone also accepts characters such as ``'²'`` that
    ``int`` cannot parse.

    Args:
        raw_value: String sent by the client.

    Returns:
        True if ``int(raw_value)`` is a non-negative integer.
    """
    return raw_value.isascii() and raw_value.isdigit()


class ParentKey(enum.Enum):
    """Parent references that are not a record id."""

    ROOT = 'root'
    UNPARSABLE = 'unparsable'


def parse_parent_id(raw_parent_id: object) -> int | ParentKey:
    """Interpret a parent id coming from a request.

    Args:
        raw_parent_id: Value sent by the client (int, str or None).

    Returns:
        Record id, ``ParentKey.ROOT`` or ``ParentKey.UNPARSABLE``.
    """
    if raw_parent_id in _ROOT_VALUES:
        return ParentKey.ROOT
    if isinstance(raw_parent_id, bool):
        return ParentKey.UNPARSABLE
    if isinstance(raw_parent_id, int):
        return raw_parent_id if raw_parent_id > 0 else ParentKey.UNPARSABLE
    if isinstance(raw_parent_id, str) and is_plain_number(raw_parent_id):
        parent_id = int(raw_parent_id)
        return parent_id if parent_id > 0 else ParentKey.ROOT
    return ParentKey.UNPARSABLE


def validate_parent(
    store: 'MetadataStore',
    parent: int | ParentKey,
) -> File | None:
    """Check that a new record may be placed under the given parent.

    Args:
        store: Metadata store to look the parent up in.
        parent: Parsed parent reference.

    Returns:
        Parent folder, or None for the root.

    Raises:
        FileValidationError: If the parent is missing or not a folder.
    """
    if parent is ParentKey.ROOT:
        return None

    parent_record = None
    if parent is not ParentKey.UNPARSABLE:
        parent_record = store.get_by_id(parent)

    if parent_record is None:
        logger.info('Parent not found: %s', parent)
        raise FileValidationError('Parent not found')
    if parent_record.kind != FileKind.FOLDER:
        logger.info('Parent is not a folder: %d', parent_record.id)
        raise FileValidationError('Parent is not a folder')
    return parent_record
