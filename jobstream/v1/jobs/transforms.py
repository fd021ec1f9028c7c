"""
Deterministic string transforms executed by the job worker.
"""

import base64
from collections import Counter

from jobstream.config.settings import TransformType
from jobstream.v1.core.registries import transform_registry


def frequency_base64(text: str) -> str:
    """
    Build ``{char}{count}.../{base64}`` from the input.

    Characters are sorted by code point and paired with their occurrence
    count; the suffix is the base64 of the UTF-8 encoded input.

    >>> frequency_base64("Hello, World!")
    ' 1!1,1H1W1d1e1l3o2r1/SGVsbG8sIFdvcmxkIQ=='
    """
    if not text:
        raise ValueError("Input cannot be null or empty")

    return f"{character_frequency(text)}/{encode_base64(text)}"


def character_frequency(text: str) -> str:
    counts = Counter(text)
    return "".join(f"{char}{counts[char]}" for char in sorted(counts))


def encode_base64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def register_transforms() -> None:
    """Register all built-in transforms with the transform registry."""
    if TransformType.FREQUENCY_BASE64.value not in transform_registry.list():
        transform_registry.register(TransformType.FREQUENCY_BASE64.value, frequency_base64)


# Auto-register transforms when module is imported
register_transforms()
