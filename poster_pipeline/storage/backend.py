"""Storage backend capability consumed by the upload orchestrator."""

from collections.abc import Callable, Mapping
from typing import Protocol

ProgressCallback = Callable[[float], None]

DEFAULT_CONTENT_TYPE: str = "image/jpeg"


class StorageBackend(Protocol):
    """Remote store for encoded poster bytes.

    Implementations make a single best-effort attempt per call and raise
    their own errors on network, authentication or quota problems; the
    pipeline passes those errors through unchanged and never retries.
    """

    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: Mapping[str, str],
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        progress: ProgressCallback | None = None,
    ) -> str:
        """Store the bytes at path and return a public locator.

        Args:
            data: Encoded image bytes.
            path: Destination path within the store.
            metadata: String metadata stored alongside the object.
            content_type: MIME type of the bytes.
            progress: Optional callback receiving the transferred fraction in [0, 1].
                May be invoked from a worker thread.

        Returns:
            Locator identifying the stored object for later retrieval.
        """
        ...

    async def delete(self, path: str) -> None:
        """Delete the object at path. Deleting a missing object is not an error."""
        ...
