"""
Byte streams for http_message.

This module provides the Stream class used as the body of HTTP
messages and as the source of uploaded files. A Stream wraps a
binary file object and exposes size, position and read/write
access with explicit detached/closed state.
"""

import io
import logging
import os
import tempfile
from typing import Any, BinaryIO, Dict, Optional, Union

from .exceptions import IOOperationError, ResourceStateError, ValidationError

logger = logging.getLogger(__name__)

StreamContent = Union[bytes, bytearray, str, BinaryIO]


class Stream:
    """
    Binary stream wrapping a file object.

    A Stream is either backed by an in-memory spool (when created from
    bytes or text) or by an existing binary file object. Once detached
    or closed, every positional operation raises ResourceStateError.
    """

    MODES_WRITE = ("r+", "w", "w+", "a", "a+", "x", "x+")
    MODES_READ = ("r", "r+", "w+", "a+", "x+")

    # Contents above this size roll over from memory to a temporary file
    MEMORY_LIMIT = 2 * 1024 * 1024

    def __init__(
        self,
        content: StreamContent = b"",
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize Stream.

        Args:
            content: Initial contents (bytes or text) or a binary file object
            options: Optional overrides for "size", "seekable",
                "readable" and "writable"
        """
        options = options or {}

        if isinstance(content, (bytes, bytearray, str)):
            self._handle: Optional[BinaryIO] = self._spool(content)
        elif isinstance(content, io.TextIOBase):
            raise ValidationError("Stream content must be a binary file object, got a text stream")
        elif hasattr(content, "read") or hasattr(content, "write"):
            self._handle = content
        else:
            raise ValidationError(
                f"Stream content must be bytes, str or a binary file object, "
                f"got {type(content).__name__}"
            )

        self._eof = False
        self._seekable = self._option(options, "seekable", self._probe("seekable", True))
        self._readable = self._option(options, "readable", self._probe("readable", self._mode_allows(self.MODES_READ)))
        self._writable = self._option(options, "writable", self._probe("writable", self._mode_allows(self.MODES_WRITE)))

        size = options.get("size")
        if isinstance(size, int) and not isinstance(size, bool) and size >= 0:
            self._size: Optional[int] = size
        else:
            self._size = self._stat_size()

    @classmethod
    def from_file(cls, path: Union[str, "os.PathLike[str]"], mode: str = "r") -> "Stream":
        """
        Open a file and wrap it in a Stream.

        Args:
            path: File system path to open
            mode: One of the MODES_READ / MODES_WRITE modes, with or
                without a trailing "b"; files are always opened in binary

        Returns:
            New Stream instance

        Raises:
            ValidationError: If the mode is not a supported stream mode
            IOOperationError: If the file cannot be opened
        """
        mode = cls.filter_mode(mode)
        try:
            handle = open(path, mode + "b")
        except OSError as e:
            raise IOOperationError("open", f"Unable to create a stream from file [{path}]", e) from e

        logger.debug(f"Opened stream on {path} with mode {mode}")
        return cls(handle)

    @classmethod
    def filter_mode(cls, mode: str) -> str:
        """Validate a stream mode and return it without the binary flag."""
        normalized = mode.replace("b", "")
        if normalized not in cls.MODES_WRITE and normalized not in cls.MODES_READ:
            raise ValidationError(f"Invalid mode {mode}")
        return normalized

    def _spool(self, content: Union[bytes, bytearray, str]) -> BinaryIO:
        if isinstance(content, str):
            content = content.encode("utf-8")

        handle = tempfile.SpooledTemporaryFile(max_size=self.MEMORY_LIMIT, mode="w+b")
        try:
            handle.write(content)
            handle.seek(0)
        except OSError as e:
            handle.close()
            raise IOOperationError("write", "Unable to create a stream from string", e) from e
        return handle  # type: ignore[return-value]

    @staticmethod
    def _option(options: Dict[str, Any], key: str, default: bool) -> bool:
        value = options.get(key)
        return value if isinstance(value, bool) else default

    def _probe(self, name: str, default: bool) -> bool:
        probe = getattr(self._handle, name, None)
        if not callable(probe):
            return default
        try:
            return bool(probe())
        except (OSError, ValueError):
            return False

    def _mode_allows(self, modes: tuple) -> bool:
        mode = getattr(self._handle, "mode", "")
        if not isinstance(mode, str):
            return False
        mode = mode.replace("b", "")
        # "rb+" and "r+b" both normalize to the same mode
        if "+" in mode:
            mode = mode.replace("+", "") + "+"
        return mode in modes

    def _stat_size(self) -> Optional[int]:
        handle = self._handle
        if handle is None or not self._seekable:
            return None

        try:
            position = handle.tell()
            end = handle.seek(0, io.SEEK_END)
            handle.seek(position)
            return end
        except (OSError, ValueError):
            return None

    def _require_handle(self) -> BinaryIO:
        if self._handle is None:
            raise ResourceStateError("Stream resource is detached")
        return self._handle

    def __bytes__(self) -> bytes:
        """Return the whole stream contents, or b"" if they cannot be read."""
        try:
            if self._seekable:
                self.rewind()
            return self.get_contents()
        except (ResourceStateError, IOOperationError):
            return b""

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        state = "detached" if self._handle is None else "attached"
        return f"<Stream {state} size={self._size}>"

    def close(self) -> None:
        """Close the underlying file object and detach it."""
        if self._handle is None:
            return

        try:
            self._handle.close()
        except OSError as e:
            raise IOOperationError("close", "Unable to close the stream", e) from e
        self.detach()

    def detach(self) -> Optional[BinaryIO]:
        """
        Separate the underlying file object from the stream.

        Returns:
            The underlying file object, or None if already detached
        """
        handle = self._handle
        if handle is not None:
            self._handle = None
            self._size = None
            self._seekable = False
            self._writable = False
            self._readable = False
        return handle

    @property
    def size(self) -> Optional[int]:
        """Get the size of the stream in bytes, or None if unknown."""
        return self._size

    def tell(self) -> int:
        """Return the current position of the read/write pointer."""
        handle = self._require_handle()
        try:
            return handle.tell()
        except (OSError, ValueError) as e:
            raise IOOperationError(
                "tell",
                "Unable to tell the current position of the stream read/write pointer",
                e,
            ) from e

    def eof(self) -> bool:
        """Check whether the stream is at its end."""
        if self._handle is None or self._eof:
            return True

        if not self._seekable:
            return False

        try:
            position = self._handle.tell()
            end = self._handle.seek(0, io.SEEK_END)
            self._handle.seek(position)
        except (OSError, ValueError):
            return True
        return position >= end

    @property
    def seekable(self) -> bool:
        return self._seekable

    @property
    def readable(self) -> bool:
        return self._readable

    @property
    def writable(self) -> bool:
        return self._writable

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> None:
        """
        Move the read/write pointer.

        Args:
            offset: Stream offset
            whence: One of io.SEEK_SET, io.SEEK_CUR, io.SEEK_END
        """
        handle = self._require_handle()
        if not self._seekable:
            raise ResourceStateError("Stream is not seekable")

        try:
            handle.seek(offset, whence)
        except (OSError, ValueError) as e:
            raise IOOperationError("seek", "Can not seek to a position in the stream", e) from e
        self._eof = False

    def rewind(self) -> None:
        """Seek to the beginning of the stream."""
        self.seek(0)

    def write(self, data: Union[bytes, str]) -> int:
        """
        Write data to the stream.

        Args:
            data: Bytes to write; text is encoded as UTF-8

        Returns:
            Number of bytes written
        """
        handle = self._require_handle()
        if not self._writable:
            raise ResourceStateError("Stream is not writable")

        if isinstance(data, str):
            data = data.encode("utf-8")

        try:
            written = handle.write(data)
        except (OSError, ValueError) as e:
            raise IOOperationError("write", "Unable to write data to the stream", e) from e

        self._size = self._stat_size()
        return len(data) if written is None else written

    def read(self, length: int) -> bytes:
        """
        Read up to length bytes from the stream.

        Args:
            length: Maximum number of bytes to read

        Returns:
            The bytes read; b"" at the end of the stream
        """
        handle = self._require_handle()
        if not self._readable:
            raise ResourceStateError("Stream is not readable")

        try:
            data = handle.read(length)
        except (OSError, ValueError) as e:
            raise IOOperationError("read", "Unable to read data from the stream", e) from e

        if data is None:
            return b""
        self._check_binary(data)
        if len(data) < length:
            self._eof = True
        return data

    def get_contents(self) -> bytes:
        """Read the remaining contents of the stream."""
        handle = self._require_handle()
        if not self._readable:
            raise ResourceStateError("Stream is not readable")

        try:
            contents = handle.read()
        except (OSError, ValueError) as e:
            raise IOOperationError("read", "Unable to get contents of the stream", e) from e

        if contents is None:
            contents = b""
        self._check_binary(contents)
        self._eof = True
        return contents

    @staticmethod
    def _check_binary(data: Any) -> None:
        if not isinstance(data, (bytes, bytearray)):
            raise IOOperationError("read", f"Stream returned {type(data).__name__}, expected bytes")

    def get_metadata(self, key: Optional[str] = None) -> Any:
        """
        Get stream metadata.

        Args:
            key: Optional metadata key ("mode", "seekable", "uri", "closed")

        Returns:
            The whole metadata dict, or the value for key (None if unknown)
        """
        handle = self._require_handle()
        name = getattr(handle, "name", None)
        meta = {
            "mode": getattr(handle, "mode", None),
            "seekable": self._seekable,
            "uri": name if isinstance(name, (str, bytes)) else None,
            "closed": getattr(handle, "closed", False),
        }
        if key is None:
            return meta
        return meta.get(key)
