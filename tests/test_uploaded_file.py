"""
Unit tests for UploadedFile and normalize_files.

Tests metadata, the move-once contract for file and stream backed
uploads, and normalization of file descriptor trees.
"""

import io
import os

import pytest

from http_message.exceptions import IOOperationError, ResourceStateError, ValidationError
from http_message.streams import Stream
from http_message.uploaded_file import UploadContext, UploadedFile, UploadError, normalize_files


class FailingReader(io.BytesIO):
    """A binary file object whose reads always fail."""

    def read(self, size: int = -1) -> bytes:
        raise OSError("disk error")


class TestUploadedFileCreation:
    """Test creating uploaded files."""

    def test_metadata(self, upload_file) -> None:
        """Test the client-provided metadata."""
        upload = UploadedFile(upload_file(), 16, UploadError.OK, "report.pdf", "application/pdf")
        assert upload.size == 16
        assert upload.error is UploadError.OK
        assert upload.client_filename == "report.pdf"
        assert upload.client_media_type == "application/pdf"
        assert not upload.moved

    def test_size_from_stream(self) -> None:
        """Test that a stream-backed upload takes the stream size."""
        assert UploadedFile(Stream(b"12345")).size == 5
        assert UploadedFile(Stream(b"12345"), 3).size == 3

    def test_unreadable_stream(self, tmp_path) -> None:
        """Test that a write-only stream is rejected."""
        stream = Stream.from_file(tmp_path / "out", "w")
        with pytest.raises(ValidationError):
            UploadedFile(stream)
        stream.close()

    @pytest.mark.parametrize("error", [0, 1, 2, 3, 4, 6, 7, 8])
    def test_standard_error_codes(self, error: int) -> None:
        """Test the accepted error codes."""
        assert UploadedFile(Stream(b""), error=error).error == error

    @pytest.mark.parametrize("error", [-1, 5, 9])
    def test_invalid_error_code(self, error: int) -> None:
        """Test rejected error codes."""
        with pytest.raises(ValidationError):
            UploadedFile(Stream(b""), error=error)


class TestUploadedFileStream:
    """Test get_stream."""

    def test_file_backed_stream(self, upload_file) -> None:
        """Test that the file is opened lazily for reading."""
        upload = UploadedFile(upload_file(b"contents"))
        stream = upload.get_stream()
        assert stream.get_contents() == b"contents"
        assert upload.get_stream() is stream
        stream.close()

    def test_missing_file(self, tmp_path) -> None:
        """Test opening an upload whose file does not exist."""
        with pytest.raises(IOOperationError):
            UploadedFile(str(tmp_path / "gone")).get_stream()


class TestUploadedFileMove:
    """Test move_to."""

    def test_move_stream(self, tmp_path) -> None:
        """Test copying a stream-backed upload to its target."""
        source = Stream(b"streamed data")
        source.read(4)
        upload = UploadedFile(source, client_filename="data.bin")
        target = tmp_path / "data.bin"

        upload.move_to(str(target))

        assert target.read_bytes() == b"streamed data"
        assert upload.moved
        assert source.detach() is None

    def test_failed_copy_closes_source(self, tmp_path) -> None:
        """Test that the source stream is closed when copying fails."""
        handle = FailingReader(b"data")
        source = Stream(handle)
        upload = UploadedFile(source)

        with pytest.raises(IOOperationError) as exc_info:
            upload.move_to(str(tmp_path / "target"))

        assert exc_info.value.operation == "read"
        assert handle.closed
        assert source.detach() is None
        assert not upload.moved

    def test_move_cli_renames(self, upload_file, tmp_path) -> None:
        """Test that a CLI upload is renamed."""
        source = upload_file(b"cli")
        target = tmp_path / "moved.txt"

        UploadedFile(source, context=UploadContext.CLI).move_to(str(target))

        assert target.read_bytes() == b"cli"
        assert not os.path.exists(source)

    def test_move_server_upload(self, upload_file, tmp_path) -> None:
        """Test that a server upload is moved."""
        source = upload_file(b"server")
        target = tmp_path / "stored.txt"

        UploadedFile(source, context=UploadContext.SERVER).move_to(str(target))

        assert target.read_bytes() == b"server"
        assert not os.path.exists(source)

    def test_move_server_upload_with_error(self, upload_file, tmp_path) -> None:
        """Test that a failed server upload cannot be moved."""
        upload = UploadedFile(upload_file(), error=UploadError.PARTIAL, context=UploadContext.SERVER)
        with pytest.raises(IOOperationError) as exc_info:
            upload.move_to(str(tmp_path / "target"))
        assert exc_info.value.operation == "move"
        assert not upload.moved

    def test_rename_failure(self, tmp_path) -> None:
        """Test that a failed rename is reported."""
        upload = UploadedFile(str(tmp_path / "missing"), context=UploadContext.CLI)
        with pytest.raises(IOOperationError) as exc_info:
            upload.move_to(str(tmp_path / "target"))
        assert exc_info.value.operation == "rename"

    def test_move_only_once(self, tmp_path) -> None:
        """Test that a moved upload cannot be moved or read again."""
        upload = UploadedFile(Stream(b"once"))
        upload.move_to(str(tmp_path / "first"))

        with pytest.raises(ResourceStateError):
            upload.move_to(str(tmp_path / "second"))
        with pytest.raises(ResourceStateError):
            upload.get_stream()

    def test_empty_target(self) -> None:
        """Test that an empty target path is rejected."""
        upload = UploadedFile(Stream(b"data"))
        with pytest.raises(ValidationError):
            upload.move_to("")
        assert not upload.moved


class TestNormalizeFiles:
    """Test normalize_files."""

    def test_single_file(self, upload_file) -> None:
        """Test a flat file descriptor."""
        path = upload_file()
        tree = normalize_files({
            "avatar": {"tmp_name": path, "size": 16, "error": 0, "name": "me.png", "type": "image/png"},
        })

        avatar = tree["avatar"]
        assert isinstance(avatar, UploadedFile)
        assert avatar.size == 16
        assert avatar.client_media_type == "image/png"

    def test_nested_fields(self, upload_file) -> None:
        """Test the name[details][photo] layout."""
        path = upload_file()
        tree = normalize_files({
            "form_name": {
                "name": {"details": {"photo": "me.jpg"}},
                "type": {"details": {"photo": "image/jpeg"}},
                "tmp_name": {"details": {"photo": path}},
                "error": {"details": {"photo": 0}},
                "size": {"details": {"photo": 100}},
            },
        })

        photo = tree["form_name"]["details"]["photo"]
        assert isinstance(photo, UploadedFile)
        assert photo.client_filename == "me.jpg"
        assert photo.client_media_type == "image/jpeg"
        assert photo.size == 100

    def test_multiple_files(self) -> None:
        """Test the list layout of a multi-file field."""
        tree = normalize_files({
            "docs": {
                "name": ["a.txt", "b.txt"],
                "type": ["text/plain", "text/plain"],
                "tmp_name": ["/tmp/phpA", ""],
                "error": [0, 4],
                "size": [10, 0],
            },
        })

        assert tree["docs"][0].client_filename == "a.txt"
        assert tree["docs"][1].error is UploadError.NO_FILE

    def test_existing_uploaded_file(self) -> None:
        """Test that UploadedFile leaves are kept as they are."""
        upload = UploadedFile(Stream(b"data"))
        assert normalize_files({"doc": upload})["doc"] is upload

    def test_plain_nested_mapping(self, upload_file) -> None:
        """Test a mapping of descriptors without an error key of its own."""
        path = upload_file()
        tree = normalize_files({"group": {"doc": {"tmp_name": path, "error": 0, "name": "doc.txt"}}})
        assert tree["group"]["doc"].client_filename == "doc.txt"

    def test_server_context_by_default(self, upload_file, tmp_path) -> None:
        """Test that normalized uploads are moved with the server checks."""
        tree = normalize_files({"doc": {"tmp_name": upload_file(), "error": UploadError.CANT_WRITE}})
        with pytest.raises(IOOperationError):
            tree["doc"].move_to(str(tmp_path / "target"))
