"""Adapter for setting logging context from an upload attempt."""

from poster_pipeline.logging.context import set_correlation_id, set_extra_context


def set_upload_context(upload_id: str, destination_id: str) -> None:
    """Tag all log records of the current upload task.

    Args:
        upload_id: Identifier of the upload attempt, used as correlation ID.
        destination_id: Event identifier the poster belongs to.
    """
    set_correlation_id(upload_id)
    set_extra_context(destination_id=destination_id)
