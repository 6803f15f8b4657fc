"""Remote directory preparation and file synchronization."""

from .remote_paths import FileChannel, RemotePathPreparer, normalize_remote_path
from .uploader import FileSynchronizer, is_excluded

__all__ = [
    "FileChannel",
    "RemotePathPreparer",
    "FileSynchronizer",
    "is_excluded",
    "normalize_remote_path",
]
