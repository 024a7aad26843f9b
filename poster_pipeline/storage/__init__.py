"""Storage backends for uploaded posters."""

from poster_pipeline.storage.backend import DEFAULT_CONTENT_TYPE, ProgressCallback, StorageBackend
from poster_pipeline.storage.memory import InMemoryStorageBackend, StoredObject, UploadCall
from poster_pipeline.storage.s3 import S3StorageBackend

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "InMemoryStorageBackend",
    "ProgressCallback",
    "S3StorageBackend",
    "StorageBackend",
    "StoredObject",
    "UploadCall",
]
