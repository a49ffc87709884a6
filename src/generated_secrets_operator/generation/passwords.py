"""Random password generation."""

from __future__ import annotations

import secrets
import string

from ..models import GeneratedValue
from ..utils.errors import GenerationError

LOWER_LETTERS = string.ascii_lowercase
UPPER_LETTERS = string.ascii_uppercase
DIGITS = string.digits
SYMBOLS = "~!@#$%^&*()_+`-={}|[]\\:\"<>?,./"

_random = secrets.SystemRandom()


def random_between(minimum: int, maximum: int) -> int:
    """Return a uniform random integer in ``[minimum, maximum]``.

    Returns 0 when ``maximum`` is 0 and ``maximum`` when the range is
    degenerate (``minimum >= maximum``).
    """
    if maximum <= 0:
        return 0
    if minimum >= maximum:
        return maximum
    return minimum + secrets.randbelow(maximum - minimum + 1)


def password_length(spec: GeneratedValue) -> int:
    """Compute the effective length of a generated value."""
    if spec.max_length > 0:
        return random_between(spec.min_length, spec.max_length)
    return max(spec.length, spec.min_length)


def symbol_and_digit_counts(spec: GeneratedValue, length: int) -> tuple[int, int]:
    """Draw how many symbols and digits a value of ``length`` gets.

    Digits are trimmed when symbols and digits together would not fit.
    """
    num_symbols = min(length, random_between(0, spec.max_symbols))
    num_digits = min(length, random_between(0, spec.max_digits))
    num_digits = min(num_digits, length - num_symbols)
    return num_symbols, num_digits


def _choose(pool: str, previous: str | None, no_repeat: bool) -> str:
    if no_repeat and previous is not None and previous in pool:
        pool = pool.replace(previous, "")
    return secrets.choice(pool)


def generate_password(
    length: int,
    num_digits: int,
    num_symbols: int,
    no_upper: bool = False,
    no_repeat: bool = False,
) -> str:
    """Generate a random string with an exact character class composition.

    Args:
        length: Total number of characters
        num_digits: Exact number of digit characters
        num_symbols: Exact number of symbol characters
        no_upper: Only use lowercase letters
        no_repeat: Never place the same character twice in a row

    Returns:
        The generated string

    Raises:
        GenerationError: If the requested composition is impossible
    """
    if length < 0 or num_digits < 0 or num_symbols < 0:
        raise GenerationError("length, digits and symbols must not be negative")
    if num_digits + num_symbols > length:
        raise GenerationError(
            f"number of digits ({num_digits}) and symbols ({num_symbols}) exceeds length ({length})"
        )

    letters = LOWER_LETTERS if no_upper else LOWER_LETTERS + UPPER_LETTERS
    pools = [SYMBOLS] * num_symbols + [DIGITS] * num_digits
    pools += [letters] * (length - len(pools))
    _random.shuffle(pools)

    chars: list[str] = []
    for pool in pools:
        chars.append(_choose(pool, chars[-1] if chars else None, no_repeat))
    return "".join(chars)


def generate_value(spec: GeneratedValue) -> bytes:
    """Generate a password for the given parameters."""
    length = password_length(spec)
    num_symbols, num_digits = symbol_and_digit_counts(spec, length)
    return generate_password(
        length,
        num_digits=num_digits,
        num_symbols=num_symbols,
        no_upper=spec.no_upper,
        no_repeat=spec.no_repeat,
    ).encode("utf-8")
