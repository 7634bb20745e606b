"""
Uploaded files for http_message.

This module defines UploadedFile, the metadata and move-once
semantics of a single file received in a request, and
normalize_files, which turns a $_FILES-shaped mapping into a tree
of UploadedFile leaves.
"""

import logging
import os
import shutil
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .exceptions import IOOperationError, ResourceStateError, ValidationError
from .streams import Stream

logger = logging.getLogger(__name__)


class UploadError(IntEnum):
    """Standard upload error codes."""
    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


class UploadContext(Enum):
    """How a file-backed upload is moved to its target."""
    CLI = "cli"         # plain rename
    SERVER = "server"   # verify the source is a genuine upload, then move


class UploadedFile:
    """
    A file uploaded through an HTTP request.

    The file is backed either by a file name (typically a temporary
    file written by the server) or by a readable Stream. It can be
    moved exactly once; afterwards get_stream and move_to fail.
    """

    DEFAULT_BUFFER_SIZE = 8192

    def __init__(
        self,
        source: Union[str, Stream],
        size: Optional[int] = None,
        error: int = UploadError.OK,
        client_filename: Optional[str] = None,
        client_media_type: Optional[str] = None,
        context: UploadContext = UploadContext.CLI,
    ) -> None:
        """
        Initialize UploadedFile.

        Args:
            source: File name of the uploaded file, or a readable Stream
            size: Size in bytes; taken from the stream when omitted
            error: One of the UploadError codes
            client_filename: File name sent by the client
            client_media_type: Media type sent by the client
            context: How move_to moves a file-backed upload
        """
        self._filename: Optional[str] = None
        self._stream: Optional[Stream] = None

        if isinstance(source, Stream):
            if not source.readable:
                raise ValidationError("Stream is not readable")
            self._stream = source
            self._size = size if size else source.size
        else:
            self._filename = source
            self._size = size

        self._error = self.filter_error(error)
        self._client_filename = client_filename
        self._client_media_type = client_media_type
        self._context = context
        self._moved = False

    @staticmethod
    def filter_error(error: int) -> UploadError:
        try:
            return UploadError(error)
        except ValueError as e:
            raise ValidationError(f"Upload error code {error!r} is not a standard upload error", e) from e

    @property
    def size(self) -> Optional[int]:
        return self._size

    @property
    def error(self) -> UploadError:
        return self._error

    @property
    def client_filename(self) -> Optional[str]:
        return self._client_filename

    @property
    def client_media_type(self) -> Optional[str]:
        return self._client_media_type

    @property
    def moved(self) -> bool:
        return self._moved

    def get_stream(self) -> Stream:
        """
        Get a stream on the uploaded file.

        Raises:
            ResourceStateError: If the file has already been moved
        """
        if self._moved:
            raise ResourceStateError("Stream is not available! Uploaded file is moved")

        if self._stream is None:
            self._stream = Stream.from_file(self._filename or "", "r")
        return self._stream

    def move_to(self, target_path: str) -> None:
        """
        Move the uploaded file to a new location.

        Args:
            target_path: Destination path

        Raises:
            ResourceStateError: If the file has already been moved
            ValidationError: If target_path is empty
            IOOperationError: If the rename, move or copy fails
        """
        if self._moved:
            raise ResourceStateError("Uploaded file is already moved")

        target_path = self.filter_target_path(target_path)

        if self._filename is not None:
            if self._context is UploadContext.CLI:
                self._rename(target_path)
            else:
                self._move_upload(target_path)
        else:
            self._copy_stream(target_path)

        self._moved = True
        logger.debug(f"Uploaded file {self._client_filename!r} moved to {target_path}")

    @staticmethod
    def filter_target_path(target_path: str) -> str:
        if not target_path:
            raise ValidationError("Target path can not be empty.")
        return target_path

    def _rename(self, target_path: str) -> None:
        try:
            os.rename(self._filename, target_path)
        except OSError as e:
            raise IOOperationError("rename", "Unable to rename the uploaded file", e) from e

    def _move_upload(self, target_path: str) -> None:
        if self._error is not UploadError.OK or not os.path.isfile(self._filename):
            raise IOOperationError("move", f"{self._filename!r} is not a valid uploaded file")
        try:
            shutil.move(self._filename, target_path)
        except OSError as e:
            raise IOOperationError("move", "Unable to move the uploaded file", e) from e

    def _copy_stream(self, target_path: str) -> None:
        stream = self.get_stream()
        if stream.seekable:
            stream.rewind()

        try:
            destination = Stream.from_file(target_path, "w")
            try:
                while not stream.eof():
                    chunk = stream.read(self.DEFAULT_BUFFER_SIZE)
                    if not chunk or not destination.write(chunk):
                        break
            finally:
                destination.close()
        finally:
            stream.close()

    def __repr__(self) -> str:
        return f"<UploadedFile {self._client_filename!r} size={self._size} error={self._error.name}>"


FileTree = Dict[Any, Any]


def _entries(node: Any) -> Iterable[Tuple[Any, Any]]:
    if isinstance(node, Mapping):
        return node.items()
    if isinstance(node, (list, tuple)):
        return enumerate(node)
    return ()


def _pick(field: Any, key: Any, default: Any) -> Any:
    if isinstance(field, Mapping):
        return field.get(key, default)
    if isinstance(field, (list, tuple)) and isinstance(key, int) and key < len(field):
        return field[key]
    return default


def normalize_files(
    files: Mapping[Any, Any],
    context: UploadContext = UploadContext.SERVER,
) -> FileTree:
    """
    Normalize a $_FILES-shaped mapping into a tree of UploadedFile.

    Each entry is either an UploadedFile, a descriptor with "tmp_name",
    "size", "error", "name" and "type" keys, a descriptor whose fields
    are themselves nested per sub-field (name[details][photo] layout),
    or a plain nested mapping of such entries.

    Args:
        files: The uploaded file descriptors
        context: Upload context given to the created UploadedFile objects

    Returns:
        Tree of dicts whose leaves are UploadedFile instances
    """
    normalized: FileTree = {}
    for name, info in _entries(files):
        if isinstance(info, UploadedFile):
            normalized[name] = info
            continue

        if not isinstance(info, Mapping) or info.get("error") is None:
            if isinstance(info, (Mapping, list, tuple)):
                normalized[name] = normalize_files(info, context)
            continue

        error = info["error"]
        if not isinstance(error, (Mapping, list, tuple)):
            normalized[name] = UploadedFile(
                info.get("tmp_name") or "",
                info.get("size") or None,
                error,
                info.get("name") or None,
                info.get("type") or None,
                context=context,
            )
            continue

        nested = {}
        for key, _ in _entries(error):
            nested[key] = {
                "tmp_name": _pick(info.get("tmp_name"), key, ""),
                "name": _pick(info.get("name"), key, ""),
                "size": _pick(info.get("size"), key, None),
                "error": _pick(error, key, 0),
                "type": _pick(info.get("type"), key, ""),
            }
        normalized[name] = normalize_files(nested, context)

    return normalized
