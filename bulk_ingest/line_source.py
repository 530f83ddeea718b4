"""Read the source NDJSON file: resolve its path, pre-count lines, stream and decode them."""
import json
from pathlib import Path
from typing import Any, Iterator, Union

from bulk_ingest.errors import FileAccessError, RecordDecodeError

NEWLINE = b"\n"
CHUNK_SIZE = 64 * 1024


def resolve_source_path(raw: str) -> Path:
    """Absolute paths as given; relative ones against the current working directory."""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _open_error(path: Path, error: OSError) -> FileAccessError:
    reason = error.strerror or str(error)
    return FileAccessError(
        f"Cannot read source file {path}: {reason}. Check the --file path and its permissions."
    )


def count_lines(path: Path) -> int:
    """Count newline bytes in path without decoding it, one chunk at a time."""
    total = 0
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += chunk.count(NEWLINE)
    except OSError as e:
        raise _open_error(path, e) from e
    return total


def iter_lines(path: Path) -> Iterator[bytes]:
    """Yield each raw line of path without its line terminator, lazily and in file order.

    Lines stay undecoded so a bad byte is reported by decode_line against its own
    line. The file is opened when iteration starts; call again to restart from the top.
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise _open_error(path, e) from e
    with f:
        for raw in f:
            yield raw.rstrip(b"\r\n")


def decode_line(line: Union[bytes, str], line_number: int) -> Any:
    """Parse one UTF-8 JSON line; line_number is one-based and only used in errors."""
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RecordDecodeError(
                f"Line {line_number} is not valid UTF-8: {e.reason}. "
                "Fix the line or rerun with --skip-malformed.",
                line_number,
            ) from e
    try:
        return json.loads(line)
    except json.JSONDecodeError as e:
        raise RecordDecodeError(
            f"Invalid JSON at line {line_number}: {e.msg}. "
            "Fix the line or rerun with --skip-malformed.",
            line_number,
        ) from e
