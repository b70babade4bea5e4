"""Buffered byte cursor with line and position bookkeeping."""

from typing import IO

from ._lexers import EOF
from ._lexers import NEWLINE
from ._lexers import Byte
from ._lexers import whitespace_bytes

DEFAULT_BUFFER_SIZE = 64 * 1024


class Cursor:
    """
    Reads a byte source one byte at a time with single-byte push-back.

    ``(line, position)`` is always the location of the last byte consumed:
    ``line`` is 1-based and ``position`` counts the bytes consumed on the
    current line, dropping back to 0 after each newline. The source is read
    in chunks of ``buffer_size`` bytes; a refill only happens on the advance
    after the last byte of a chunk, so push-back never has to cross one.
    """

    def __init__(
        self,
        source: IO[bytes],
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        extended_whitespace: bool = True,
    ) -> None:
        self.source = source
        self.buffer_size = buffer_size
        self.line = 1
        self.position = 0
        self.error: OSError | None = None

        self._whitespace = whitespace_bytes(extended_whitespace)
        self._chunk = b""
        self._index = 0
        self._exhausted = False
        # Coordinates before the last advance; None when push_back is illegal.
        self._previous: tuple[int, int] | None = None

    def _fill(self) -> bool:
        """Reads the next chunk, returns False once the source is done."""
        if self._exhausted:
            return False

        try:
            data = self.source.read(self.buffer_size)
        except OSError as exc:
            self.error = exc
            self._exhausted = True
            return False

        if not data:
            self._exhausted = True
            return False

        self._chunk = bytes(data)
        self._index = 0
        return True

    def advance(self) -> Byte:
        """
        Consumes and returns the next byte, or EOF.

        Exhaustion and read failures both return EOF; a read failure is kept
        in ``error`` so the caller can report it.
        """
        if self._index >= len(self._chunk) and not self._fill():
            self._previous = None
            return EOF

        byte = self._chunk[self._index]
        self._index += 1
        self._previous = (self.line, self.position)

        if byte == NEWLINE:
            self.line += 1
            self.position = 0
        else:
            self.position += 1
        return byte

    def push_back(self) -> None:
        """
        Un-consumes the byte returned by the last ``advance``.

        Only one level is supported: calling it twice in a row, before any
        advance or after EOF is a programming error.
        """
        if self._previous is None:
            raise RuntimeError("push_back requires a preceding advance")

        self._index -= 1
        self.line, self.position = self._previous
        self._previous = None

    def skip_whitespace(self) -> Byte:
        """Advances past whitespace and returns the first other byte or EOF."""
        byte = self.advance()
        while byte in self._whitespace:
            byte = self.advance()
        return byte

    def reset_position(self) -> None:
        """Restarts coordinates at line 1, position 0."""
        self.line = 1
        self.position = 0
