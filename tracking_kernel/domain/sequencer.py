"""
Serial number sequencing.

Parses a seed serial such as ``PR-UNITSN-007`` into a prefix, a number and
a zero-pad width, and generates consecutive serials from it.  The seed must
be a non-digit prefix followed by a digit suffix.  Any other seed (no
trailing digits, digits inside the prefix, no prefix at all) is not an
error: the whole seed becomes the prefix and numbering starts at 1 with
width 3.

Each tracked serial field (primary unit S/N, optional secondary PCB S/N)
is sequenced independently with its own seed and width.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tracking_kernel.logging_config import get_logger

logger = get_logger("domain.sequencer")

INVALID_SERIAL_SEED = "INVALID_SERIAL_SEED"

DEFAULT_NUMBER = 1
DEFAULT_WIDTH = 3

# Non-digit prefix followed by a digit suffix.
_SERIAL_PATTERN = re.compile(r"^(\D+)(\d+)$")


@dataclass(frozen=True)
class SerialSpec:
    """Parsed seed serial."""

    prefix: str
    number: int
    width: int
    is_fallback: bool = False

    def format(self, offset: int = 0) -> str:
        return f"{self.prefix}{self.number + offset:0{self.width}d}"


def parse_serial(serial: str) -> SerialSpec:
    """Split a serial into prefix, trailing number and digit width.

    Falls back to ``(serial, 1, 3)`` when the serial is not a non-digit
    prefix followed by a digit suffix, and logs a warning with code
    ``INVALID_SERIAL_SEED``.
    """
    match = _SERIAL_PATTERN.match(serial)
    if match:
        digits = match.group(2)
        return SerialSpec(prefix=match.group(1), number=int(digits), width=len(digits))

    logger.warning(
        "serial_seed_fallback",
        extra={
            "code": INVALID_SERIAL_SEED,
            "seed": serial,
            "fallback_number": DEFAULT_NUMBER,
            "fallback_width": DEFAULT_WIDTH,
        },
    )
    return SerialSpec(
        prefix=serial,
        number=DEFAULT_NUMBER,
        width=DEFAULT_WIDTH,
        is_fallback=True,
    )


def generate_serials(seed: str, count: int) -> tuple[str, ...]:
    """Generate ``count`` consecutive serials starting at ``seed``.

    ``count <= 0`` yields an empty tuple.
    """
    if count <= 0:
        return ()
    spec = parse_serial(seed)
    return tuple(spec.format(i) for i in range(count))


def default_seed(prefix: str, existing_count: int, width: int = DEFAULT_WIDTH) -> str:
    """Suggest the next seed for a batch that already holds ``existing_count`` units."""
    return f"{prefix}{existing_count + 1:0{width}d}"
