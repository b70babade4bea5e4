"""
Test data generators for tokenizer benchmarks.

Produces UTF-8 encoded JSON payloads of various shapes, including streams
of back-to-back top-level documents.
"""

import json
import random
import string
from typing import Any

_ESCAPES = ['\\"', "\\\\", "\\/", "\\b", "\\f", "\\n", "\\r", "\\t"]
_ESCAPE_PROBABILITY = 0.3

DATA_TYPES = [
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
    "document_stream",
]


def generate_test_data(data_type: str, seed: int = 1234) -> bytes:
    """Generates a UTF-8 JSON payload of the given shape."""
    generators = {
        "small_object": _generate_small_object,
        "large_object": _generate_large_object,
        "mixed_array": _generate_mixed_array,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
        "document_stream": _generate_document_stream,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    rng = random.Random(seed)
    return generators[data_type](rng)


def split_documents(data: bytes) -> list[bytes]:
    """Splits a newline-delimited payload into its documents."""
    return [line for line in data.splitlines() if line.strip()]


def _encode(value: Any) -> bytes:
    return json.dumps(value).encode("utf-8")


def _generate_small_object(rng: random.Random) -> bytes:
    return _encode(
        {
            "id": 12345,
            "name": "Alice Johnson",
            "email": "alice@example.com",
            "active": True,
            "balance": 1234.56,
            "metadata": {"created": "2024-01-15T10:30:00Z", "source": "api"},
        }
    )


def _timestamp(rng: random.Random) -> str:
    return (
        f"2024-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
        f"T{rng.randint(0, 23):02d}:{rng.randint(0, 59):02d}:00Z"
    )


def _generate_large_object(rng: random.Random) -> bytes:
    """A user profile with transaction and activity history (> 10KB)."""
    return _encode(
        {
            "user_id": rng.randint(1000000, 9999999),
            "profile": {
                "first_name": _random_string(rng, 10),
                "last_name": _random_string(rng, 12),
                "language": rng.choice(["en", "es", "fr", "de", "zh"]),
                "notifications": {
                    "email": rng.choice([True, False]),
                    "push": rng.choice([True, False]),
                },
            },
            "transactions": [
                {
                    "id": f"txn_{i:06d}",
                    "amount": round(rng.uniform(1.0, 1000.0), 2),
                    "currency": rng.choice(["USD", "EUR", "GBP", "JPY"]),
                    "timestamp": _timestamp(rng),
                    "description": f"Payment for {_random_string(rng, 20)}",
                    "refunded": None,
                }
                for i in range(50)
            ],
            "activity_log": [
                {
                    "timestamp": _timestamp(rng),
                    "action": rng.choice(["login", "logout", "view"]),
                    "user_agent": f"Mozilla/5.0 ({_random_string(rng, 20)})",
                }
                for _ in range(30)
            ],
        }
    )


def _generate_mixed_array(rng: random.Random) -> bytes:
    makers = [
        lambda i: rng.randint(-1000, 1000),
        lambda i: round(rng.uniform(-100.0, 100.0), 3),
        lambda i: _random_string(rng, rng.randint(5, 30)),
        lambda i: rng.choice([True, False]),
        lambda i: None,
        lambda i: {"index": i, "score": round(rng.uniform(0, 100), 2)},
    ]
    return _encode([rng.choice(makers)(i) for i in range(200)])


def _generate_nested_structure(rng: random.Random) -> bytes:
    def create(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(rng, 10)}
        return {
            "level": depth,
            "items": [create(depth - 1) for _ in range(3)],
            "nested": create(depth - 1),
        }

    return _encode(create(7))


def _generate_string_heavy(rng: random.Random) -> bytes:
    """Strings dense with escape sequences, built as raw JSON text."""

    def escaped() -> str:
        return "".join(
            rng.choice(_ESCAPES)
            if rng.random() < _ESCAPE_PROBABILITY
            else rng.choice(string.ascii_letters + " ")
            for _ in range(50)
        )

    items = [f'"{escaped()}"' for _ in range(100)]
    items += [f'"\\u{rng.randint(0x00A0, 0x2FFF):04x}"' for _ in range(50)]
    return ("[" + ", ".join(items) + "]").encode("utf-8")


def _generate_document_stream(rng: random.Random) -> bytes:
    """Newline-delimited event records."""
    lines = [
        _encode(
            {
                "seq": i,
                "kind": rng.choice(["click", "view", "scroll"]),
                "at": _timestamp(rng),
                "tags": [_random_string(rng, 5) for _ in range(3)],
            }
        )
        for i in range(500)
    ]
    return b"\n".join(lines) + b"\n"


def _random_string(rng: random.Random, length: int) -> str:
    return "".join(rng.choices(string.ascii_letters, k=length))
