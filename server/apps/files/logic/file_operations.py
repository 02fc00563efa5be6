"""Upload and retrieval workflow for files.

``FileService`` ties the collaborators together: it resolves the token,
validates the request, checks the folder hierarchy, stores the content
and metadata, and hands images to the thumbnail pipeline.

Collaborators are injected so tests can swap in in-memory backends;
``build_file_service`` wires the configured ones.
"""

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Protocol, final

from django.conf import settings

from server.apps.files.exceptions import (
    FileStoreError,
    FileValidationError,
    NotFoundError,
    QueueUnavailableError,
    UnauthorizedError,
)
from server.apps.files.infrastructure.job_queue import DatabaseJobQueue
from server.apps.files.infrastructure.metadata import (
    decode_payload,
    derivative_name,
    detect_mime_type,
    generate_storage_name,
)
from server.apps.files.infrastructure.storage import ByteStore
from server.apps.files.logic.access_control import (
    UserIdentity,
    can_read,
    can_write,
)
from server.apps.files.logic.derivative_operations import get_thumbnail_sizes
from server.apps.files.logic.hierarchy import (
    is_plain_number,
    parse_parent_id,
    validate_parent,
)
from server.apps.files.logic.metadata_store import MetadataStore, NewFile
from server.apps.files.models import File, FileKind
from server.apps.tokens.logic.token_store import TokenCredentialStore

logger = logging.getLogger(__name__)

# `parentId` reported for records at the root
_ROOT_PARENT_ID: Final = 0

# Longest name the database column accepts
_NAME_MAX_LENGTH: Final = File._meta.get_field('name').max_length


class CredentialStore(Protocol):
    """Resolves opaque tokens to identities."""

    def resolve(self, token: str) -> UserIdentity | None:
        """Return the identity behind a token, None if it is not valid."""


class JobQueue(Protocol):
    """Accepts derivative jobs for the thumbnail pipeline."""

    def enqueue(self, owner_id: int, file_id: int) -> object:
        """Durably record a job, raise QueueUnavailableError on failure."""


class UploadState(enum.Enum):
    """Steps of an upload, in order."""

    AUTHENTICATING = 'authenticating'
    VALIDATING_SHAPE = 'validating_shape'
    VALIDATING_HIERARCHY = 'validating_hierarchy'
    PERSISTING = 'persisting'
    ENQUEUEING = 'enqueueing'
    DONE = 'done'


@dataclass(frozen=True, slots=True)
class UploadRequest:
    """Upload request body, fields as sent by the client."""

    name: Any = None
    type: Any = None
    data: Any = None
    parent_id: Any = None
    is_public: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'UploadRequest':
        """Build a request from a decoded JSON body.

        Args:
            payload: Body with `name`, `type`, `data`, `parentId`
                and `isPublic` keys, all optional.

        Returns:
            UploadRequest instance.
        """
        return cls(
            name=payload.get('name'),
            type=payload.get('type'),
            data=payload.get('data'),
            parent_id=payload.get('parentId'),
            is_public=bool(payload.get('isPublic', False)),
        )


@dataclass(frozen=True, slots=True)
class FileContent:
    """Content returned for a file or one of its thumbnails."""

    data: bytes
    mime_type: str


def serialize_file(file_record: File) -> dict[str, Any]:
    """Public representation of a record.

    The storage name is never exposed.

    Args:
        file_record: File instance.

    Returns:
        Dictionary ready for JSON encoding.
    """
    return {
        'id': file_record.id,
        'userId': file_record.user_id,
        'name': file_record.name,
        'type': file_record.kind,
        'isPublic': file_record.is_public,
        'parentId': file_record.parent_id or _ROOT_PARENT_ID,
    }


def get_storage_prefix() -> str:
    """Get prefix of byte store names for uploaded content.

    Returns:
        Prefix from settings or default of 'files_manager'.
    """
    return getattr(settings, 'FILES_STORAGE_PREFIX', 'files_manager')


def _coerce_id(raw_id: int | str) -> int | None:
    if isinstance(raw_id, int):
        return raw_id
    if is_plain_number(raw_id):
        return int(raw_id)
    return None


def _parse_number(raw_value: object) -> int | None:
    if isinstance(raw_value, int) and not isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, str) and is_plain_number(raw_value):
        return int(raw_value)
    return None


@final
class FileService:
    """Uploads, lists, publishes and serves files."""

    def __init__(
        self,
        credentials: CredentialStore,
        metadata: MetadataStore,
        byte_store: ByteStore,
        job_queue: JobQueue,
    ) -> None:
        """Initialize FileService.

        Args:
            credentials: Token resolver.
            metadata: File record store.
            byte_store: Content store.
            job_queue: Thumbnail job queue.
        """
        self._credentials = credentials
        self._metadata = metadata
        self._byte_store = byte_store
        self._job_queue = job_queue

    def upload(self, token: str | None, request: UploadRequest) -> File:
        """Create a folder, file or image.

        Checks run in a fixed order, so a request with several problems
        always gets the same error: token, name, type, data, parent.

        Content is stored before the record is committed, and the
        thumbnail job is enqueued after it. A failed enqueue is logged
        and the upload still succeeds; the thumbnails are then missing.

        Args:
            token: Auth token.
            request: Upload request.

        Returns:
            Created File instance.

        Raises:
            UnauthorizedError: If the token is not valid.
            FileValidationError: If the request is malformed, the parent
                is not a folder or the content could not be stored.
            StorageUnavailableError: If the database is unreachable.
        """
        state = UploadState.AUTHENTICATING
        try:
            identity = self._authenticate(token)

            state = self._enter(UploadState.VALIDATING_SHAPE, identity)
            kind, content = self._validate_shape(request)

            state = self._enter(UploadState.VALIDATING_HIERARCHY, identity)
            parent = validate_parent(
                self._metadata,
                parse_parent_id(request.parent_id),
            )

            state = self._enter(UploadState.PERSISTING, identity)
            file_record = self._persist(
                NewFile(
                    owner_id=identity.id,
                    name=request.name,
                    kind=kind,
                    is_public=request.is_public,
                    parent_id=parent.id if parent else None,
                ),
                content,
            )
        except FileStoreError as exc:
            logger.info('Upload failed while %s: %s', state.value, exc.message)
            raise

        if kind == FileKind.IMAGE:
            self._enter(UploadState.ENQUEUEING, identity)
            self._enqueue_derivatives(file_record)

        self._enter(UploadState.DONE, identity)
        return file_record

    def get_one(self, token: str | None, file_id: int | str) -> File:
        """Get a record the requester may read.

        Args:
            token: Auth token.
            file_id: Record id.

        Returns:
            File instance.

        Raises:
            UnauthorizedError: If the token is not valid.
            NotFoundError: If the record is missing or not readable.
        """
        identity = self._authenticate(token)
        return self._get_readable(identity, file_id)

    def list_files(
        self,
        token: str | None,
        parent_id: object = None,
        page: object = 0,
    ) -> list[File]:
        """List one page of the requester's records.

        Args:
            token: Auth token.
            parent_id: Folder to list; root (the default) lists all the
                requester's records, an unparsable id lists nothing.
            page: Zero-based page number; anything but digits means 0.

        Returns:
            Records on the page.

        Raises:
            UnauthorizedError: If the token is not valid.
        """
        identity = self._authenticate(token)
        return self._metadata.list_files(
            owner_id=identity.id,
            parent=parse_parent_id(parent_id),
            page=_parse_number(page) or 0,
        )

    def publish(self, token: str | None, file_id: int | str) -> File:
        """Make a record public. Publishing a public record is a no-op.

        Args:
            token: Auth token.
            file_id: Record id.

        Returns:
            Record in its new state.

        Raises:
            UnauthorizedError: If the token is not valid.
            NotFoundError: If the requester owns no such record.
        """
        return self._set_visibility(token, file_id, is_public=True)

    def unpublish(self, token: str | None, file_id: int | str) -> File:
        """Make a record private. Unpublishing a private record is a no-op.

        Args:
            token: Auth token.
            file_id: Record id.

        Returns:
            Record in its new state.

        Raises:
            UnauthorizedError: If the token is not valid.
            NotFoundError: If the requester owns no such record.
        """
        return self._set_visibility(token, file_id, is_public=False)

    def get_content(
        self,
        token: str | None,
        file_id: int | str,
        size: object = None,
    ) -> FileContent:
        """Get the content of a file, or of one of its thumbnails.

        Anonymous requests are allowed and can read public files.
        Thumbnails are generated in the background: until the pipeline
        has produced the requested size, it is reported as not found.

        Args:
            token: Auth token, may be None.
            file_id: Record id.
            size: Thumbnail width, None for the original content.

        Returns:
            FileContent with bytes and MIME type.

        Raises:
            NotFoundError: If the record, its content or the thumbnail
                is missing, or the record is not readable.
            FileValidationError: If the record is a folder.
        """
        identity = self._credentials.resolve(token) if token else None
        file_record = self._get_readable(identity, file_id)

        if file_record.is_folder:
            raise FileValidationError("A folder doesn't have content")

        storage_name = file_record.storage_ref
        if size is not None:
            width = _parse_number(size)
            if width is None or width not in get_thumbnail_sizes():
                raise NotFoundError()
            storage_name = derivative_name(storage_name, width)

        return FileContent(
            data=self._byte_store.read(storage_name),
            mime_type=detect_mime_type(file_record.name),
        )

    def _authenticate(self, token: str | None) -> UserIdentity:
        identity = self._credentials.resolve(token) if token else None
        if identity is None:
            raise UnauthorizedError()
        return identity

    def _enter(
        self,
        state: UploadState,
        identity: UserIdentity,
    ) -> UploadState:
        logger.debug('Upload for user %d: %s', identity.id, state.value)
        return state

    def _validate_shape(
        self,
        request: UploadRequest,
    ) -> tuple[FileKind, bytes | None]:
        if not request.name or not isinstance(request.name, str):
            raise FileValidationError('Missing name')
        if len(request.name) > _NAME_MAX_LENGTH:
            raise FileValidationError('Invalid name')
        if request.type not in FileKind.values:
            raise FileValidationError('Missing type')

        kind = FileKind(request.type)
        if kind == FileKind.FOLDER:
            return kind, None

        if not request.data or not isinstance(request.data, str):
            raise FileValidationError('Missing data')
        try:
            return kind, decode_payload(request.data)
        except ValueError as exc:
            raise FileValidationError('Invalid data') from exc

    def _persist(self, record: NewFile, content: bytes | None) -> File:
        if content is None:
            return self._metadata.insert(record)

        storage_name = self._byte_store.write(
            generate_storage_name(get_storage_prefix()),
            content,
        )
        try:
            return self._metadata.insert(
                NewFile(
                    owner_id=record.owner_id,
                    name=record.name,
                    kind=record.kind,
                    is_public=record.is_public,
                    parent_id=record.parent_id,
                    storage_ref=storage_name,
                ),
            )
        except Exception:
            logger.exception(
                'Metadata commit failed, rolling back content: %s',
                storage_name,
            )
            self._byte_store.discard(storage_name)
            raise

    def _enqueue_derivatives(self, file_record: File) -> None:
        try:
            self._job_queue.enqueue(
                owner_id=file_record.user_id,
                file_id=file_record.id,
            )
        except QueueUnavailableError:
            # The file exists; only its thumbnails will be missing
            logger.exception(
                'Failed to enqueue thumbnails for file %d',
                file_record.id,
            )

    def _get_readable(
        self,
        identity: UserIdentity | None,
        file_id: int | str,
    ) -> File:
        record_id = _coerce_id(file_id)
        file_record = None
        if record_id is not None:
            file_record = self._metadata.get_by_id(record_id)

        if file_record is None or not can_read(file_record, identity):
            raise NotFoundError()
        return file_record

    def _set_visibility(
        self,
        token: str | None,
        file_id: int | str,
        *,
        is_public: bool,
    ) -> File:
        identity = self._authenticate(token)
        record_id = _coerce_id(file_id)
        file_record = None
        if record_id is not None:
            file_record = self._metadata.get_by_id_for_owner(
                record_id,
                identity.id,
            )

        if file_record is None or not can_write(file_record, identity):
            raise NotFoundError()
        if file_record.is_public == is_public:
            return file_record
        return self._metadata.update_visibility(
            file_record.id,
            identity.id,
            is_public=is_public,
        )


def build_file_service() -> FileService:
    """Create a FileService wired to the configured backends.

    Returns:
        FileService using auth tokens, the ORM, default storage and the
        database job queue.
    """
    return FileService(
        credentials=TokenCredentialStore(),
        metadata=MetadataStore(),
        byte_store=ByteStore(),
        job_queue=DatabaseJobQueue(),
    )
