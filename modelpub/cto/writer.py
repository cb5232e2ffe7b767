"""Line-oriented file writer used by code generation visitors."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..sinks import FileSink


class FileWriter:
    """Buffers one open file at a time and hands it to a sink on close.

    Visitors call `open_file`, `write_line` and `close_file`; where the bytes
    end up (a directory, an archive) is decided by the sink.
    """

    INDENT = "   "

    def __init__(self, sink: "FileSink") -> None:
        self._sink = sink
        self.file_name: Optional[str] = None
        self._lines: List[str] = []

    def open_file(self, file_name: str) -> None:
        # Opening a new file discards whatever the previous unclosed file buffered.
        self.file_name = file_name
        self.clear_buffer()

    def write_line(self, indent: int, text: str) -> None:
        if self.file_name is None:
            raise RuntimeError("No file open")
        self._lines.append(f"{self.INDENT * indent}{text}")

    def get_buffer(self) -> str:
        if not self._lines:
            return ""
        return "\n".join(self._lines) + "\n"

    def clear_buffer(self) -> None:
        self._lines = []

    def close_file(self) -> None:
        if self.file_name is None:
            raise RuntimeError("No file open")
        payload = self.get_buffer().encode("utf-8")
        file_name = self.file_name
        self.file_name = None
        self.clear_buffer()
        self._sink.commit(file_name, payload)


__all__ = ["FileWriter"]
