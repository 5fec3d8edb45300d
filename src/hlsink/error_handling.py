"""Error mapping for storage operations.

Backend implementations raise whatever their transport raises (``OSError``,
``botocore`` client errors, ...). This module translates such failures into
the sink's own storage exceptions at the storage boundary, keeping the
original exception chained as ``__cause__``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Type

from hlsink.exceptions import ErrorContext, SinkError, StorageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def storage_errors(
    target_exception: Type[StorageError],
    resource: Optional[str] = None,
    track_id: Optional[Any] = None,
):
    """Async context manager mapping backend failures to ``target_exception``.

    Args:
        target_exception: Storage error raised in place of the backend error
        resource: Name of the resource being written or removed
        track_id: Track the resource belongs to, when known
    """
    try:
        yield
    except SinkError:
        raise
    except Exception as e:
        logger.error(f"{target_exception.operation} failed for {resource}: {e}")
        raise target_exception(
            f"Storage {target_exception.operation} failed: {e}",
            context=ErrorContext(
                track_id=track_id,
                resource=resource,
                operation=target_exception.operation,
            ),
        ) from e

