"""
Pytest configuration and shared fixtures for jevents tests.

Provides immutable event-sequence cases, JSON_checker documents and a small
replay helper that rebuilds Python values from an event stream.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from typing import Any

import pytest

from jevents import Event
from jevents import EventType
from jevents import ParseError

E = EventType


@dataclass(frozen=True)
class EventCase:
    """
    Immutable container for an input document and its expected events.

    ``events`` excludes the terminal END_OF_STREAM event; ``error`` is the
    error that terminal event must carry.
    """

    description: str
    input_data: bytes
    events: tuple[Event, ...] = field(default_factory=tuple)
    error: ParseError | None = None


@dataclass(frozen=True)
class JsonTestCase:
    """Immutable JSON_checker document with its expected outcome."""

    description: str
    input_data: str
    should_fail: bool = False
    skip_reason: str = ""


def ev(event_type: EventType, value: Any = None) -> Event:
    return Event(event_type, value)


def member(key: str, *value: Event) -> tuple[Event, ...]:
    """Events for one object member: markers, key string and value events."""
    return (ev(E.OBJECT_KEY), ev(E.STRING, key), ev(E.OBJECT_VALUE), *value)


def obj(*members: tuple[Event, ...]) -> tuple[Event, ...]:
    inner = tuple(event for m in members for event in m)
    return (ev(E.OBJECT_START), *inner, ev(E.OBJECT_END))


def arr(*items: Event | tuple[Event, ...]) -> tuple[Event, ...]:
    inner: list[Event] = []
    for item in items:
        if isinstance(item, Event):
            inner.append(item)
        else:
            inner.extend(item)
    return (ev(E.ARRAY_START), *inner, ev(E.ARRAY_END))


def build_documents(events: Iterable[Event]) -> list[Any]:
    """
    Replays an event stream into Python values, one per top-level document.

    Raises the terminal error if the stream carries one.
    """
    documents: list[Any] = []
    stack: list[Any] = []
    keys: list[str] = []
    key_next = False

    def attach(value: Any) -> None:
        if not stack:
            documents.append(value)
        elif isinstance(stack[-1], list):
            stack[-1].append(value)
        else:
            stack[-1][keys.pop()] = value

    for event in events:
        if event.type is E.OBJECT_KEY:
            key_next = True
        elif event.type is E.OBJECT_VALUE:
            continue
        elif event.type in (E.OBJECT_START, E.ARRAY_START):
            container: Any = {} if event.type is E.OBJECT_START else []
            attach(container)
            stack.append(container)
        elif event.type in (E.OBJECT_END, E.ARRAY_END):
            stack.pop()
        elif event.type is E.END_OF_STREAM:
            if event.error is not None:
                raise event.error
        elif key_next:
            keys.append(event.value)
            key_next = False
        else:
            attach(event.value)

    return documents


@pytest.fixture
def event_cases() -> list[EventCase]:
    """
    Provides documents that tokenize cleanly with their exact event stream.
    """
    return [
        EventCase("empty object", b"{}", obj()),
        EventCase("empty array", b"[]", arr()),
        EventCase(
            "string member",
            b'{"foo": "bar"}',
            obj(member("foo", ev(E.STRING, "bar"))),
        ),
        EventCase(
            "unicode escapes",
            b'{"foo": "\\u265e\\u2602"}',
            obj(member("foo", ev(E.STRING, "♞☂"))),
        ),
        EventCase(
            "integer",
            b'{"foo": 10}',
            obj(member("foo", ev(E.NUMBER, 10))),
        ),
        EventCase(
            "float with fraction",
            b'{"foo": 10.0}',
            obj(member("foo", ev(E.NUMBER, 10.0))),
        ),
        EventCase(
            "float with exponent",
            b'{"foo": 10e6}',
            obj(member("foo", ev(E.NUMBER, 10e6))),
        ),
        EventCase(
            "negative float",
            b'{"foo": -1.3}',
            obj(member("foo", ev(E.NUMBER, -1.3))),
        ),
        EventCase(
            "true",
            b'{"foo": true}',
            obj(member("foo", ev(E.BOOLEAN, True))),
        ),
        EventCase(
            "false",
            b'{"foo": false}',
            obj(member("foo", ev(E.BOOLEAN, False))),
        ),
        EventCase(
            "null",
            b'{"foo": null}',
            obj(member("foo", ev(E.NULL))),
        ),
        EventCase(
            "empty nested array",
            b'{"foo": []}',
            obj(member("foo", *arr())),
        ),
        EventCase(
            "array of strings",
            b'{"foo": ["a", "b"]}',
            obj(member("foo", *arr(ev(E.STRING, "a"), ev(E.STRING, "b")))),
        ),
        EventCase(
            "nested structures",
            b'{"foo": [{"a": true, "b": false}, '
            b'{"b": 10.0, "c": [1, 2, 3]}]}',
            obj(
                member(
                    "foo",
                    *arr(
                        obj(
                            member("a", ev(E.BOOLEAN, True)),
                            member("b", ev(E.BOOLEAN, False)),
                        ),
                        obj(
                            member("b", ev(E.NUMBER, 10.0)),
                            member(
                                "c",
                                *arr(
                                    ev(E.NUMBER, 1),
                                    ev(E.NUMBER, 2),
                                    ev(E.NUMBER, 3),
                                ),
                            ),
                        ),
                    ),
                )
            ),
        ),
        EventCase(
            "top-level array of scalars",
            b'[1, -2, 3.5, "x", true, false, null]',
            arr(
                ev(E.NUMBER, 1),
                ev(E.NUMBER, -2),
                ev(E.NUMBER, 3.5),
                ev(E.STRING, "x"),
                ev(E.BOOLEAN, True),
                ev(E.BOOLEAN, False),
                ev(E.NULL),
            ),
        ),
        EventCase(
            "whitespace everywhere",
            b' \t\r\n{ "a" :\n[ 1 ,\t2 ] , "b" : { } }\n',
            obj(
                member("a", *arr(ev(E.NUMBER, 1), ev(E.NUMBER, 2))),
                member("b", *obj()),
            ),
        ),
        EventCase(
            "back-to-back documents",
            b'{"foo": "bar"}       {"bar": "baz"}',
            obj(member("foo", ev(E.STRING, "bar")))
            + obj(member("bar", ev(E.STRING, "baz"))),
        ),
        EventCase(
            "adjacent documents",
            b'{"foo": "bar"}{"bar": true}[]',
            obj(member("foo", ev(E.STRING, "bar")))
            + obj(member("bar", ev(E.BOOLEAN, True)))
            + arr(),
        ),
    ]


@pytest.fixture
def json_fail_cases() -> list[JsonTestCase]:
    """
    Provides JSON strings from json.org JSON_checker that must fail.

    Every failure is reported through the terminal event.
    """
    fail_docs = [
        # https://json.org/JSON_checker/test/fail1.json
        '"A JSON payload should be an object or array, not a string."',
        # https://json.org/JSON_checker/test/fail2.json
        '["Unclosed array"',
        # https://json.org/JSON_checker/test/fail3.json
        '{unquoted_key: "keys must be quoted"}',
        # https://json.org/JSON_checker/test/fail4.json
        '["extra comma",]',
        # https://json.org/JSON_checker/test/fail5.json
        '["double extra comma",,]',
        # https://json.org/JSON_checker/test/fail6.json
        '[   , "<-- missing value"]',
        # https://json.org/JSON_checker/test/fail7.json
        '["Comma after the close"],',
        # https://json.org/JSON_checker/test/fail8.json
        '["Extra close"]]',
        # https://json.org/JSON_checker/test/fail9.json
        '{"Extra comma": true,}',
        # https://json.org/JSON_checker/test/fail10.json
        '{"Extra value after close": true} "misplaced quoted value"',
        # https://json.org/JSON_checker/test/fail11.json
        '{"Illegal expression": 1 + 2}',
        # https://json.org/JSON_checker/test/fail12.json
        '{"Illegal invocation": alert()}',
        # https://json.org/JSON_checker/test/fail13.json
        '{"Numbers cannot have leading zeroes": 013}',
        # https://json.org/JSON_checker/test/fail14.json
        '{"Numbers cannot be hex": 0x14}',
        # https://json.org/JSON_checker/test/fail15.json
        '["Illegal backslash escape: \\x15"]',
        # https://json.org/JSON_checker/test/fail16.json
        "[\\naked]",
        # https://json.org/JSON_checker/test/fail17.json
        '["Illegal backslash escape: \\017"]',
        # https://json.org/JSON_checker/test/fail18.json
        '[[[[[[[[[[[[[[[[[[[["Too deep"]]]]]]]]]]]]]]]]]]]]',
        # https://json.org/JSON_checker/test/fail19.json
        '{"Missing colon" null}',
        # https://json.org/JSON_checker/test/fail20.json
        '{"Double colon":: null}',
        # https://json.org/JSON_checker/test/fail21.json
        '{"Comma instead of colon", null}',
        # https://json.org/JSON_checker/test/fail22.json
        '["Colon instead of comma": false]',
        # https://json.org/JSON_checker/test/fail23.json
        '["Bad value", truth]',
        # https://json.org/JSON_checker/test/fail24.json
        "['single quote']",
        # https://json.org/JSON_checker/test/fail25.json
        '["\ttab\tcharacter\tin\tstring\t"]',
        # https://json.org/JSON_checker/test/fail26.json
        '["tab\\   character\\   in\\  string\\  "]',
        # https://json.org/JSON_checker/test/fail27.json
        '["line\nbreak"]',
        # https://json.org/JSON_checker/test/fail28.json
        '["line\\\nbreak"]',
        # https://json.org/JSON_checker/test/fail29.json
        "[0e]",
        # https://json.org/JSON_checker/test/fail30.json
        "[0e+]",
        # https://json.org/JSON_checker/test/fail31.json
        "[0e+-1]",
        # https://json.org/JSON_checker/test/fail32.json
        '{"Comma instead if closing brace": true,',
        # https://json.org/JSON_checker/test/fail33.json
        '["mismatch"}',
        # https://code.google.com/archive/p/simplejson/issues/3
        '["A\u001fZ control characters in string"]',
    ]

    skips = {
        13: "leading zeros are accepted by decimal integer parsing",
        18: "nesting is only limited by max_depth",
    }

    return [
        JsonTestCase(
            description=f"fail{idx + 1}.json",
            input_data=doc,
            should_fail=True,
            skip_reason=skips.get(idx + 1, ""),
        )
        for idx, doc in enumerate(fail_docs)
    ]


@pytest.fixture
def json_pass_cases() -> list[JsonTestCase]:
    """
    Provides JSON_checker documents that must tokenize without error.
    """
    return [
        JsonTestCase(
            description="pass1.json - complex nested structure",
            input_data="""[
    "JSON Test Pattern pass1",
    {"object with 1 member":["array with 1 element"]},
    {},
    [],
    -42,
    true,
    false,
    null,
    {
        "integer": 1234567890,
        "real": -9876.543210,
        "e": 0.123456789e-12,
        "E": 1.234567890E+34,
        "":  23456789012E66,
        "zero": 0,
        "one": 1,
        "space": " ",
        "quote": "\\"",
        "backslash": "\\\\",
        "controls": "\\b\\f\\n\\r\\t",
        "slash": "/ & \\/",
        "alpha": "abcdefghijklmnopqrstuvwyz",
        "ALPHA": "ABCDEFGHIJKLMNOPQRSTUVWYZ",
        "digit": "0123456789",
        "0123456789": "digit",
        "special": "`1~!@#$%^&*()_+-={':[,]}|;.</>?",
        "hex": "\\u0123\\u4567\\u89AB\\uCDEF\\uabcd\\uef4A",
        "true": true,
        "false": false,
        "null": null,
        "array":[  ],
        "object":{  },
        "address": "50 St. James Street",
        "url": "https://www.JSON.org/",
        "comment": "// /* <!-- --",
        "# -- --> */": " ",
        " s p a c e d " :[1,2 , 3

,

4 , 5        ,          6           ,7        ],"compact":[1,2,3,4,5,6,7],
        "jsontext": "{\\"object with 1 member\\":[\\"array with 1 element\\"]}",
        "quotes": "&#34; \\u0022 %22 0x22 034 &#x22;",
        "\\/\\\\\\"\\uCAFE\\uBABE\\uAB98\\uFCDE\\ubcda\\uef4A\\b\\f\\n\\r\\t`1~!@#$%^&*()_+-=[]{}|;:',./<>?"
: "A key can be any string"
    },
    0.5 ,98.6
,
99.44
,

1066,
1e1,
0.1e1,
1e-1,
1e00,2e+00,2e-00
,"rosebud"]""",
        ),
        JsonTestCase(
            description="pass2.json - deep nesting",
            input_data='[[[[[[[[[[[[[[[[[[["Not too deep"]]]]]]]]]]]]]]]]]]]',
        ),
        JsonTestCase(
            description="pass3.json - simple object",
            input_data='{"JSON Test Pattern pass3": {"The outermost value": '
            '"must be an object or array.", "In this test": '
            '"It is an object."}}',
        ),
    ]
