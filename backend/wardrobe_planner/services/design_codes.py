"""Design codes — short shareable identifiers for saved wardrobe designs.

A design code is the literal prefix "W" followed by characters drawn
uniformly from A-Z and 0-9, e.g. "W3K8ZQ12". Codes are generated here and
persisted by the design store, which owns collision handling.

The random source is chosen once at startup (see select_random_source) and
injected into the generator, so tests can pass a deterministic source.
"""

import os
import random
import re
import secrets
from typing import Optional, Protocol

import structlog

from wardrobe_planner.errors import InvalidDesignCodeError

logger = structlog.get_logger()

PREFIX = "W"
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_LENGTH = 8

# Shortest code the resume form accepts at the default length
MIN_RESUME_LENGTH = 6

_CODE_PATTERN = re.compile(rf"^{PREFIX}[{ALPHABET}]+$")


class RandomSource(Protocol):
    """Anything that can pick a uniform integer in [0, n)."""

    name: str

    def randbelow(self, n: int) -> int:
        ...


class StrongRandomSource:
    """OS-backed CSPRNG via the secrets module."""

    name = "secrets"

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)


class WeakRandomSource:
    """Non-cryptographic fallback (Mersenne Twister)."""

    name = "random"

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)


def select_random_source() -> RandomSource:
    """Probe the OS entropy pool and pick the strongest available source.

    Called once at process start; the result is injected wherever codes are
    generated.
    """
    try:
        os.urandom(1)
    except NotImplementedError:
        logger.warning("random_source_fallback", source=WeakRandomSource.name)
        return WeakRandomSource()
    return StrongRandomSource()


def generate_design_code(
    total_length: int = DEFAULT_LENGTH,
    source: Optional[RandomSource] = None,
) -> str:
    """Generate a design code of ``max(total_length, 1)`` characters.

    Lengths below the prefix length return the prefix alone. Never raises for
    a non-negative length.
    """
    if source is None:
        source = StrongRandomSource()

    body_length = max(0, total_length - len(PREFIX))
    body = "".join(ALPHABET[source.randbelow(len(ALPHABET))] for _ in range(body_length))
    return PREFIX + body


def is_design_code(value: str, min_length: int = MIN_RESUME_LENGTH) -> bool:
    """Check whether a string is a well-formed design code.

    ``min_length`` counts the prefix; a code always has at least one
    character after it.
    """
    return bool(_CODE_PATTERN.match(value)) and len(value) >= min_length


def normalize_design_code(raw: str, min_length: int = MIN_RESUME_LENGTH) -> str:
    """Clean up a user-entered code (whitespace, case) and validate it.

    Raises:
        InvalidDesignCodeError: if the cleaned value is not a design code
    """
    code = (raw or "").strip().upper()
    if not is_design_code(code, min_length):
        raise InvalidDesignCodeError(f"'{raw}' is not a valid design code")
    return code


class DesignCodeGenerator:
    """Generator bound to a random source and a configured code length."""

    def __init__(self, source: RandomSource, length: int = DEFAULT_LENGTH):
        self.source = source
        self.length = length

    @property
    def min_resume_length(self) -> int:
        """Shortest code to accept on resume; never longer than issued codes."""
        return min(MIN_RESUME_LENGTH, self.length)

    def generate(self, length: Optional[int] = None) -> str:
        return generate_design_code(self.length if length is None else length, self.source)
