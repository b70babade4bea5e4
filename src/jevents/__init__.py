"""
Incremental, event-driven JSON tokenizer.

Consumes a byte stream and produces a linear sequence of structural events
(object and array boundaries, keys, scalar values) without materialising the
parsed document, so multi-gigabyte inputs and streams of back-to-back
documents can be processed in bounded memory.
"""

import io
import logging
import threading
from collections.abc import Callable
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import IO
from typing import Any
from typing import Protocol
from typing import TypeAlias

from ._channel import ChannelClosed
from ._channel import RendezvousChannel
from ._cursor import DEFAULT_BUFFER_SIZE
from ._cursor import Cursor
from ._lexers import BACKSLASH
from ._lexers import COLON
from ._lexers import COMMA
from ._lexers import EOF
from ._lexers import LBRACE
from ._lexers import LBRACKET
from ._lexers import NUMBER_BYTES
from ._lexers import NUMBER_START
from ._lexers import QUOTE
from ._lexers import RBRACE
from ._lexers import RBRACKET
from ._lexers import Byte
from ._lexers import decode_string
from ._lexers import describe_byte
from ._lexers import parse_number
from ._profile import HotPathStats
from ._profile import ProfileContext
from ._profile import clear_hot_path_stats
from ._profile import get_hot_path_stats
from ._profile import record_event

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

Line: TypeAlias = int
Position: TypeAlias = int

# Hook type definitions - hooks receive the raw lexeme
ParseIntHook = Callable[[str], Any] | None
ParseFloatHook = Callable[[str], Any] | None

JsonSource = IO[bytes] | bytes | bytearray | memoryview

DEFAULT_MAX_DEPTH = 256

UNEXPECTED_EOF_MESSAGE = "unexpected end of file"
DECODE_FAILURE_MESSAGE = "unable to decode string into a valid UTF-8 string"
MAX_DEPTH_MESSAGE = "maximum nesting depth exceeded"


class EventType(Enum):
    """
    Kinds of events emitted by the tokenizer.

    OBJECT_KEY and OBJECT_VALUE carry no data: they announce that the next
    event is a key string or the start of a member value.
    """

    OBJECT_START = "object_start"
    OBJECT_KEY = "object_key"
    OBJECT_VALUE = "object_value"
    OBJECT_END = "object_end"
    ARRAY_START = "array_start"
    ARRAY_END = "array_end"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    END_OF_STREAM = "end_of_stream"


class ParseError(ValueError):
    """
    Terminal tokenizer failure with the cursor coordinates at the failure.

    ``line`` is 1-based, ``position`` is the number of bytes consumed on that
    line when the failure was detected.
    """

    def __init__(
        self, message: str, line: Line = 1, position: Position = 0
    ) -> None:
        if not isinstance(message, str):
            raise TypeError("message must be a string")
        if not isinstance(line, int) or line < 1:
            raise ValueError("line must be a positive integer")
        if not isinstance(position, int) or position < 0:
            raise ValueError("position must be a non-negative integer")

        self.message = message
        self.line = line
        self.position = position

        super().__init__(f"{message} at line {line}, position {position}")

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.message, self.line, self.position))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return (type(self), self.message, self.line, self.position) == (
            type(other),
            other.message,
            other.line,
            other.position,
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.line, self.position))


class StructuralError(ParseError):
    """A grammar expectation was violated; ``char`` is the offending byte."""

    def __init__(
        self,
        message: str,
        line: Line = 1,
        position: Position = 0,
        char: Byte | None = None,
    ) -> None:
        super().__init__(message, line, position)
        self.char = char

    def __reduce__(self) -> tuple[Any, ...]:
        return (
            type(self),
            (self.message, self.line, self.position, self.char),
        )


class UnexpectedEndOfInput(ParseError):
    """The source ran out while a production still expected bytes."""


class EscapeDecodeError(ParseError):
    """A string held a malformed escape or a raw control character."""


class NumericFormatError(ParseError):
    """A numeric lexeme failed to convert to its int or float form."""


class ParseCancelled(Exception):
    """The consumer cancelled the parse before the terminal event."""


@dataclass(frozen=True, eq=False)
class Event:
    """
    One unit of the event stream.

    Equality also compares the Python type of ``value`` so that the integer
    ``10`` and the float ``10.0`` are different NUMBER events.
    """

    type: EventType
    value: Any = None
    error: ParseError | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return (
            self.type is other.type
            and type(self.value) is type(other.value)
            and self.value == other.value
            and self.error == other.error
        )

    def __hash__(self) -> int:
        return hash((self.type, type(self.value), self.value, self.error))

    @property
    def is_terminal(self) -> bool:
        return self.type is EventType.END_OF_STREAM


class EventSink(Protocol):
    """Anything events can be handed to, e.g. ``queue.Queue``."""

    def put(self, item: Event) -> None: ...


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures tokenizer behavior with immutable settings.

    Centralized configuration for buffering, nesting limits, whitespace and
    coordinate policies, numeric conversion hooks and logging.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_depth: int = DEFAULT_MAX_DEPTH
    extended_whitespace: bool = True
    reset_position: bool = True
    parse_int: ParseIntHook = None
    parse_float: ParseFloatHook = None
    logger: logging.Logger | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.buffer_size, int) or self.buffer_size < 1:
            raise ValueError("buffer_size must be a positive integer")
        if not isinstance(self.max_depth, int) or self.max_depth < 1:
            raise ValueError("max_depth must be a positive integer")
        if not isinstance(self.extended_whitespace, bool):
            raise TypeError("extended_whitespace must be a boolean")
        if not isinstance(self.reset_position, bool):
            raise TypeError("reset_position must be a boolean")
        for name in ("parse_int", "parse_float"):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise TypeError(f"{name} must be callable")


def _as_binary_source(source: JsonSource) -> IO[bytes]:
    """Wraps in-memory bytes and rejects text sources."""
    if isinstance(source, bytes | bytearray | memoryview):
        return io.BytesIO(source)
    if isinstance(source, str):
        raise TypeError("the JSON source must be bytes or a binary stream")
    if not hasattr(source, "read"):
        raise TypeError("the JSON source must have a read() method")
    if isinstance(source, io.TextIOBase) or isinstance(source.read(0), str):
        raise TypeError("the JSON source must be bytes or a binary stream")
    return source


class Parser:
    """
    Recursive-descent tokenizer driving a cursor and emitting events.

    Each grammar production is one method and nesting depth is the call
    stack. Every failure is raised as a ParseError, unwinds the whole parse
    and is delivered to the sink as the single END_OF_STREAM event.
    """

    def __init__(
        self, source: JsonSource, config: ParseConfig | None = None
    ) -> None:
        self.config = config or ParseConfig()
        self.cursor = Cursor(
            _as_binary_source(source),
            self.config.buffer_size,
            self.config.extended_whitespace,
        )
        self.logger = self.config.logger or logger
        self._sink: EventSink | None = None
        self._cancel: threading.Event | None = None
        self._depth = 0

    def parse(
        self, sink: EventSink, cancel: threading.Event | None = None
    ) -> ParseError | None:
        """
        Tokenizes the whole source into ``sink``.

        Emits events in document order followed by exactly one END_OF_STREAM
        event, whose error is None on a clean end of input. ``cancel`` is
        polled before every emission. Running out of interpreter stack is
        reported like any other nesting overflow.

        Returns:
            The terminal error, or None.

        Raises:
            ParseCancelled: if ``cancel`` was set or a channel sink was
                closed; no terminal event is emitted in that case.
        """
        self._sink = sink
        self._cancel = cancel

        error: ParseError | None = None
        try:
            self._parse_stream()
        except ParseError as exc:
            error = exc
            self.logger.debug("parse failed: %s", exc)
        except RecursionError as exc:
            error = StructuralError(
                MAX_DEPTH_MESSAGE, self.cursor.line, self.cursor.position
            )
            error.__cause__ = exc
            self.logger.debug("parse failed: %s", error)
        else:
            self.logger.debug(
                "parse finished at line %d, position %d",
                self.cursor.line,
                self.cursor.position,
            )

        self._emit(EventType.END_OF_STREAM, error=error)
        return error

    # Events

    def _emit(
        self,
        event_type: EventType,
        value: Any = None,
        error: ParseError | None = None,
    ) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise ParseCancelled("parse cancelled by the consumer")
        sink = self._sink
        assert sink is not None
        try:
            sink.put(Event(event_type, value, error))
        except ChannelClosed as exc:
            raise ParseCancelled("event channel closed by consumer") from exc
        record_event()

    # Errors

    def _end_of_input(self) -> ParseError:
        """Builds the error for EOF where more bytes were required."""
        cursor = self.cursor
        if cursor.error is not None:
            error = ParseError(str(cursor.error), cursor.line, cursor.position)
            error.__cause__ = cursor.error
            return error
        return UnexpectedEndOfInput(
            UNEXPECTED_EOF_MESSAGE, cursor.line, cursor.position
        )

    def _structural(self, message: str, byte: Byte) -> ParseError:
        if byte == EOF:
            return self._end_of_input()
        return StructuralError(
            message, self.cursor.line, self.cursor.position, byte
        )

    def _expected(self, expected: str, byte: Byte) -> ParseError:
        return self._structural(
            f"expected {expected} but got {describe_byte(byte)}", byte
        )

    def _unexpected(self, byte: Byte) -> ParseError:
        return self._structural(
            f"unexpected character {describe_byte(byte)}", byte
        )

    # Grammar

    def _parse_stream(self) -> None:
        """
        Parses back-to-back top-level objects or arrays.

        End of input is only valid after a complete top-level value.
        """
        cursor = self.cursor
        byte = cursor.skip_whitespace()
        while True:
            if byte == LBRACE:
                self._parse_object()
            elif byte == LBRACKET:
                self._parse_array()
            else:
                raise self._unexpected(byte)

            if cursor.skip_whitespace() == EOF:
                if cursor.error is not None:
                    raise self._end_of_input()
                return

            cursor.push_back()
            if self.config.reset_position:
                cursor.reset_position()
            byte = cursor.advance()

    def _enter(self, byte: Byte) -> None:
        self._depth += 1
        if self._depth > self.config.max_depth:
            raise self._structural(MAX_DEPTH_MESSAGE, byte)

    def _parse_object(self) -> None:
        """Parses an object whose opening brace was just consumed."""
        with ProfileContext("parse_object"):
            cursor = self.cursor
            self._enter(LBRACE)
            self._emit(EventType.OBJECT_START)

            byte = cursor.skip_whitespace()
            if byte == EOF:
                raise self._end_of_input()
            if byte == RBRACE:
                self._emit(EventType.OBJECT_END)
                self._depth -= 1
                return
            cursor.push_back()

            while True:
                self._emit(EventType.OBJECT_KEY)
                byte = cursor.skip_whitespace()
                if byte != QUOTE:
                    raise self._expected('"', byte)
                self._parse_string()

                byte = cursor.skip_whitespace()
                if byte != COLON:
                    raise self._expected(":", byte)

                self._emit(EventType.OBJECT_VALUE)
                self._parse_value()

                byte = cursor.skip_whitespace()
                if byte == RBRACE:
                    break
                if byte != COMMA:
                    raise self._expected(",", byte)

            self._emit(EventType.OBJECT_END)
            self._depth -= 1

    def _parse_array(self) -> None:
        """Parses an array whose opening bracket was just consumed."""
        with ProfileContext("parse_array"):
            cursor = self.cursor
            self._enter(LBRACKET)
            self._emit(EventType.ARRAY_START)

            byte = cursor.skip_whitespace()
            if byte == EOF:
                raise self._end_of_input()
            if byte == RBRACKET:
                self._emit(EventType.ARRAY_END)
                self._depth -= 1
                return
            cursor.push_back()

            while True:
                self._parse_value()

                byte = cursor.skip_whitespace()
                if byte == RBRACKET:
                    break
                if byte != COMMA:
                    raise self._expected(",", byte)

            self._emit(EventType.ARRAY_END)
            self._depth -= 1

    def _parse_value(self) -> None:
        """Dispatches on the first non-whitespace byte of a value."""
        byte = self.cursor.skip_whitespace()
        if byte == QUOTE:
            self._parse_string()
        elif byte == LBRACE:
            self._parse_object()
        elif byte == LBRACKET:
            self._parse_array()
        elif byte in NUMBER_START:
            self._parse_number(byte)
        elif byte == ord("t") or byte == ord("f"):
            self._parse_boolean(byte)
        elif byte == ord("n"):
            self._parse_null(byte)
        else:
            raise self._unexpected(byte)

    # Scalars

    def _parse_string(self) -> None:
        """Parses a string whose opening quote was just consumed."""
        raw = self._scan_string()
        try:
            text = decode_string(raw)
        except ValueError as exc:
            raise EscapeDecodeError(
                DECODE_FAILURE_MESSAGE, self.cursor.line, self.cursor.position
            ) from exc
        self._emit(EventType.STRING, text)

    def _scan_string(self) -> bytes:
        """Buffers raw bytes up to the closing quote, keeping escapes."""
        with ProfileContext("scan_string"):
            advance = self.cursor.advance
            buffer = bytearray()
            while True:
                byte = advance()
                if byte == EOF:
                    raise self._end_of_input()
                if byte == QUOTE:
                    return bytes(buffer)
                buffer.append(byte)
                if byte == BACKSLASH:
                    byte = advance()
                    if byte == EOF:
                        raise self._end_of_input()
                    buffer.append(byte)

    def _parse_number(self, first: Byte) -> None:
        """Parses the maximal run of number bytes starting with ``first``."""
        with ProfileContext("scan_number"):
            cursor = self.cursor
            buffer = bytearray((first,))
            while True:
                byte = cursor.advance()
                if byte == EOF:
                    raise self._end_of_input()
                if byte not in NUMBER_BYTES:
                    cursor.push_back()
                    break
                buffer.append(byte)

            lexeme = buffer.decode("ascii")
            try:
                value = parse_number(
                    lexeme, self.config.parse_int, self.config.parse_float
                )
            except ValueError as exc:
                raise NumericFormatError(
                    str(exc), cursor.line, cursor.position
                ) from exc
            except RecursionError:
                raise
            except Exception as exc:
                raise NumericFormatError(
                    f"number hook failed on {lexeme!r}: {exc!r}",
                    cursor.line,
                    cursor.position,
                ) from exc
            self._emit(EventType.NUMBER, value)

    def _read_literal(self, first: Byte, size: int) -> bytes:
        """Reads ``size`` bytes of a keyword, ``first`` included."""
        buffer = bytearray((first,))
        for _ in range(size - 1):
            byte = self.cursor.advance()
            if byte == EOF:
                raise self._end_of_input()
            buffer.append(byte)
        return bytes(buffer)

    def _parse_boolean(self, first: Byte) -> None:
        literal = self._read_literal(first, 4)
        if literal == b"true":
            self._emit(EventType.BOOLEAN, True)
            return
        if literal != b"fals":
            expected = "true" if first == ord("t") else "false"
            raise self._literal_mismatch(expected, literal)

        byte = self.cursor.advance()
        if byte != ord("e"):
            raise self._expected("e", byte)
        self._emit(EventType.BOOLEAN, False)

    def _parse_null(self, first: Byte) -> None:
        literal = self._read_literal(first, 4)
        if literal != b"null":
            raise self._literal_mismatch("null", literal)
        self._emit(EventType.NULL)

    def _literal_mismatch(self, expected: str, literal: bytes) -> ParseError:
        found = "".join(describe_byte(b) for b in literal)
        return self._structural(
            f"expected {expected} but got {found}", literal[-1]
        )


class _Collector:
    """Sink that keeps every event in a list."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def put(self, item: Event) -> None:
        self.events.append(item)


class EventStream:
    """
    Runs a parser on a worker thread and iterates its events.

    Events are handed over through a RendezvousChannel, so the worker never
    runs ahead of the consumer. Iteration ends after END_OF_STREAM. An
    abandoned stream keeps its worker blocked until ``close`` is called;
    using the stream as a context manager does that automatically.
    """

    def __init__(
        self, source: JsonSource, config: ParseConfig | None = None
    ) -> None:
        self.parser = Parser(source, config)
        self.logger = self.parser.logger
        self._channel: RendezvousChannel[Event] = RendezvousChannel()
        self._cancel = threading.Event()
        self._failure: BaseException | None = None
        self._finished = False
        self._thread = threading.Thread(
            target=self._run, name="jevents-parser", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        self.logger.debug("parser worker started")
        try:
            self.parser.parse(self._channel, self._cancel)
        except ParseCancelled:
            self.logger.debug("parser worker cancelled")
        except BaseException as exc:  # re-raised on the consumer thread
            self._failure = exc
        finally:
            self._channel.close()
            self.logger.debug("parser worker stopped")

    def __iter__(self) -> Iterator[Event]:
        return self

    def __next__(self) -> Event:
        if self._finished:
            raise StopIteration

        try:
            event: Event | None = self._channel.get()
        except ChannelClosed:
            event = None

        if event is None:
            self._finished = True
            self._thread.join()
            if self._failure is not None:
                raise self._failure
            raise StopIteration

        if event.is_terminal:
            self._finished = True
        return event

    def close(self, timeout: float | None = None) -> None:
        """Cancels the worker, releases it and waits for it to stop."""
        self._finished = True
        self._cancel.set()
        self._channel.close()
        self._thread.join(timeout)

    def __enter__(self) -> "EventStream":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def iterparse(source: JsonSource, **kwargs: Any) -> EventStream:
    """
    Tokenizes ``source`` on a worker thread and returns the event iterator.

    Keyword arguments build the ParseConfig.
    """
    return EventStream(source, ParseConfig(**kwargs))


def parse_events(source: JsonSource, **kwargs: Any) -> list[Event]:
    """
    Tokenizes ``source`` on the calling thread and returns every event.

    The list always ends with END_OF_STREAM; failures are reported there
    rather than raised.
    """
    collector = _Collector()
    Parser(source, ParseConfig(**kwargs)).parse(collector)
    return collector.events


__all__ = [
    "ChannelClosed",
    "EscapeDecodeError",
    "Event",
    "EventSink",
    "EventStream",
    "EventType",
    "HotPathStats",
    "NumericFormatError",
    "ParseCancelled",
    "ParseConfig",
    "ParseError",
    "Parser",
    "RendezvousChannel",
    "StructuralError",
    "UnexpectedEndOfInput",
    "clear_hot_path_stats",
    "get_hot_path_stats",
    "iterparse",
    "parse_events",
]
