"""JSON endpoints over ``FileService``.

Clients authenticate with the ``X-Token`` header. Errors are returned
as ``{"error": message}``; a file the requester may not see gets the
same 404 as a file that does not exist.
"""

import json
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, Final

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from server.apps.files.exceptions import (
    FileStoreError,
    FileValidationError,
    NotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
)
from server.apps.files.logic.file_operations import (
    UploadRequest,
    build_file_service,
    serialize_file,
)
from server.apps.files.logic.status_operations import get_stats, get_status

logger = logging.getLogger(__name__)

_TOKEN_HEADER: Final = 'X-Token'

# Most specific classes first
_ERROR_STATUSES: Final = (
    (UnauthorizedError, 401),
    (NotFoundError, 404),
    (FileValidationError, 400),
    (StorageUnavailableError, 503),
)

_View = Callable[..., HttpResponse]


def _error_status(exc: FileStoreError) -> int:
    for error_class, status in _ERROR_STATUSES:
        if isinstance(exc, error_class):
            return status
    return 500


def _handles_file_errors(view: _View) -> _View:
    """Turn file store errors into JSON error responses."""
    @wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        try:
            return view(request, *args, **kwargs)
        except FileStoreError as exc:
            return JsonResponse(
                {'error': exc.message},
                status=_error_status(exc),
            )
    return wrapper


def _token(request: HttpRequest) -> str | None:
    return request.headers.get(_TOKEN_HEADER) or None


def _json_body(request: HttpRequest) -> dict[str, Any]:
    try:
        payload = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info('Ignoring malformed JSON body')
        return {}
    return payload if isinstance(payload, dict) else {}


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@_handles_file_errors
def files_collection(request: HttpRequest) -> HttpResponse:
    """List the requester's files (GET) or upload a new one (POST)."""
    service = build_file_service()
    if request.method == 'POST':
        file_record = service.upload(
            _token(request),
            UploadRequest.from_payload(_json_body(request)),
        )
        return JsonResponse(serialize_file(file_record), status=201)

    files = service.list_files(
        _token(request),
        parent_id=request.GET.get('parentId'),
        page=request.GET.get('page', 0),
    )
    return JsonResponse([serialize_file(item) for item in files], safe=False)


@require_GET
@_handles_file_errors
def file_detail(request: HttpRequest, file_id: int) -> HttpResponse:
    """Show one file."""
    file_record = build_file_service().get_one(_token(request), file_id)
    return JsonResponse(serialize_file(file_record))


@csrf_exempt
@require_http_methods(['PUT'])
@_handles_file_errors
def file_publish(request: HttpRequest, file_id: int) -> HttpResponse:
    """Make a file public."""
    file_record = build_file_service().publish(_token(request), file_id)
    return JsonResponse(serialize_file(file_record))


@csrf_exempt
@require_http_methods(['PUT'])
@_handles_file_errors
def file_unpublish(request: HttpRequest, file_id: int) -> HttpResponse:
    """Make a file private."""
    file_record = build_file_service().unpublish(_token(request), file_id)
    return JsonResponse(serialize_file(file_record))


@require_GET
@_handles_file_errors
def file_data(request: HttpRequest, file_id: int) -> HttpResponse:
    """Serve file content, or a thumbnail with `?size=`."""
    content = build_file_service().get_content(
        _token(request),
        file_id,
        size=request.GET.get('size') or None,
    )
    return HttpResponse(content.data, content_type=content.mime_type)


@require_GET
def status(request: HttpRequest) -> HttpResponse:
    """Report whether the database and storage are reachable."""
    return JsonResponse(get_status())


@require_GET
@_handles_file_errors
def stats(request: HttpRequest) -> HttpResponse:
    """Count users and files."""
    return JsonResponse(get_stats())
