from .core import StreamUploader, UploadSession, PartRecord
from .client import ObsStorageClient
from .config import StoreConfig
from .planner import optimal_part_info, PartPlan, UNKNOWN_SIZE
from .hashing import hash_copy_n, IteratorReader
from .exceptions import (UploadError, ConfigError, StorageError, InitiateUploadError, ReadError,
                         PartUploadError, UnexpectedEOFError, StreamTooLongError,
                         PartLimitExceededError, MissingPartError, CompleteUploadError)

__version__ = "0.1.0"

__all__ = ["StreamUploader", "UploadSession", "PartRecord", "ObsStorageClient", "StoreConfig",
           "optimal_part_info", "PartPlan", "UNKNOWN_SIZE", "hash_copy_n", "IteratorReader",
           "UploadError", "ConfigError", "StorageError", "InitiateUploadError", "ReadError",
           "PartUploadError", "UnexpectedEOFError", "StreamTooLongError", "PartLimitExceededError",
           "MissingPartError", "CompleteUploadError"]
