# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Exact resource quantities (cpu, memory, counts) with decimal and binary suffixes.

A Quantity keeps its value as an integer mantissa and a base-10 exponent, so
``500m + 250m + 0.25`` is exactly ``1`` and ``1Gi == 1073741824``. The scale a
value was written in is kept as a display hint only; it never takes part in
equality or ordering.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from functools import total_ordering


class QuantityParseError(ValueError):
    """Raised when a quantity string is malformed or uses an unknown suffix."""


class Family(str, Enum):
    """Scale family a quantity was expressed in."""

    DECIMAL = "decimal"
    BINARY = "binary"
    UNSCALED = "unscaled"


@dataclass(frozen=True)
class Scale:
    label: str
    family: Family
    base: int
    power: int

    @property
    def factor(self) -> Fraction:
        return Fraction(self.base) ** self.power

    @property
    def step(self) -> int:
        """Ratio between two neighbouring scales of the family."""
        return 1024 if self.base == 2 else 1000


SCALES: tuple[Scale, ...] = (
    Scale("n", Family.DECIMAL, 10, -9),
    Scale("u", Family.DECIMAL, 10, -6),
    Scale("m", Family.DECIMAL, 10, -3),
    Scale("", Family.UNSCALED, 10, 0),
    Scale("k", Family.DECIMAL, 10, 3),
    Scale("M", Family.DECIMAL, 10, 6),
    Scale("G", Family.DECIMAL, 10, 9),
    Scale("T", Family.DECIMAL, 10, 12),
    Scale("P", Family.DECIMAL, 10, 15),
    Scale("E", Family.DECIMAL, 10, 18),
    Scale("Ki", Family.BINARY, 2, 10),
    Scale("Mi", Family.BINARY, 2, 20),
    Scale("Gi", Family.BINARY, 2, 30),
    Scale("Ti", Family.BINARY, 2, 40),
    Scale("Pi", Family.BINARY, 2, 50),
    Scale("Ei", Family.BINARY, 2, 60),
)

SCALES_BY_LABEL: dict[str, Scale] = {s.label: s for s in SCALES}
NO_SCALE = SCALES_BY_LABEL[""]

# Family preference when two operands disagree; memory stays binary.
_FAMILY_RANK = {Family.BINARY: 0, Family.DECIMAL: 1, Family.UNSCALED: 2}

# Pattern: [sign] number [e|E exponent] [suffix], e.g. "1.5Gi", "500m", "2e3", "1E"
QUANTITY_PATTERN = re.compile(
    r"^([+-]?)(\d+(?:\.\d*)?|\.\d+)(?:[eE]([+-]?\d+))?([A-Za-z]*)$"
)


def _merge_scale(lhs: Scale, rhs: Scale) -> Scale:
    """Pick the display scale of a sum: preferred family, then finest scale."""
    return min((lhs, rhs), key=lambda s: (_FAMILY_RANK[s.family], s.factor))


def _display_candidates(scale: Scale) -> list[Scale]:
    """Scales at or above ``scale`` that a value of its family may be shown in."""
    if scale.family is Family.BINARY:
        family = [s for s in SCALES if s.family is Family.BINARY]
    else:
        family = [s for s in SCALES if s.family is not Family.BINARY]
    return sorted(
        (s for s in family if s.factor >= scale.factor), key=lambda s: s.factor
    )


def _decimal_text(value: Fraction) -> str:
    """Exact decimal text of a fraction whose denominator is 2^a * 5^b."""
    sign = "-" if value < 0 else ""
    value = abs(value)
    rest, twos, fives = value.denominator, 0, 0
    while rest % 2 == 0:
        rest //= 2
        twos += 1
    while rest % 5 == 0:
        rest //= 5
        fives += 1
    if rest != 1:
        raise ValueError(f"{value} has no finite decimal expansion")
    places = max(twos, fives)
    return sign + _insert_point(value.numerator * 10**places // value.denominator, places)


def _fixed_text(value: Fraction, places: int) -> str:
    """Decimal text rounded half-up to a fixed number of places."""
    sign = "-" if value < 0 else ""
    scaled = math.floor(abs(value) * 10**places + Fraction(1, 2))
    if scaled == 0:
        sign = ""
    return sign + _insert_point(scaled, places)


def _insert_point(digits: int, places: int) -> str:
    text = str(digits).rjust(places + 1, "0")
    if places == 0:
        return text
    return f"{text[:-places]}.{text[-places:]}"


@total_ordering
@dataclass(frozen=True, eq=False)
class Quantity:
    """An exact amount: ``mantissa * 10**exponent``, shown in ``scale``."""

    mantissa: int = 0
    exponent: int = 0
    scale: Scale = NO_SCALE

    def __post_init__(self) -> None:
        mantissa, exponent = self.mantissa, self.exponent
        if mantissa == 0:
            exponent = 0
        while mantissa != 0 and mantissa % 10 == 0:
            mantissa //= 10
            exponent += 1
        object.__setattr__(self, "mantissa", mantissa)
        object.__setattr__(self, "exponent", exponent)

    @classmethod
    def parse(cls, text: str) -> Quantity:
        """Parse a quantity such as ``"250m"``, ``"1.5Gi"`` or ``"4"``.

        Raises:
            QuantityParseError: If the literal is malformed or the suffix unknown.
        """
        match = QUANTITY_PATTERN.match(str(text).strip())
        if not match:
            raise QuantityParseError(f"Invalid quantity '{text}'")
        sign, number, exp, suffix = match.groups()
        scale = SCALES_BY_LABEL.get(suffix)
        if scale is None:
            raise QuantityParseError(
                f"Invalid quantity '{text}': unknown suffix '{suffix}'"
            )

        int_part, _, frac_part = number.partition(".")
        mantissa = int((int_part or "0") + frac_part)
        exponent = int(exp or 0) - len(frac_part)
        if scale.base == 10:
            exponent += scale.power
        else:
            mantissa *= scale.base**scale.power
        if sign == "-":
            mantissa = -mantissa
        return cls(mantissa, exponent, scale)

    @classmethod
    def zero(cls) -> Quantity:
        return cls()

    @classmethod
    def lowest_positive(cls) -> Quantity:
        """Smallest non-zero quantity (``1n``)."""
        return cls(1, -9, SCALES_BY_LABEL["n"])

    def is_zero(self) -> bool:
        return self.mantissa == 0

    def to_fraction(self) -> Fraction:
        return Fraction(self.mantissa) * Fraction(10) ** self.exponent

    def _aligned(self, other: Quantity) -> tuple[int, int, int]:
        """Both mantissas at the smaller exponent, plus that exponent."""
        exponent = min(self.exponent, other.exponent)
        return (
            self.mantissa * 10 ** (self.exponent - exponent),
            other.mantissa * 10 ** (other.exponent - exponent),
            exponent,
        )

    def __add__(self, other: Quantity) -> Quantity:
        if not isinstance(other, Quantity):
            return NotImplemented
        lhs, rhs, exponent = self._aligned(other)
        return Quantity(lhs + rhs, exponent, _merge_scale(self.scale, other.scale))

    def __sub__(self, other: Quantity) -> Quantity:
        """Difference floored at zero."""
        if not isinstance(other, Quantity):
            return NotImplemented
        lhs, rhs, exponent = self._aligned(other)
        return Quantity(max(lhs - rhs, 0), exponent, _merge_scale(self.scale, other.scale))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return (self.mantissa, self.exponent) == (other.mantissa, other.exponent)

    def __lt__(self, other: Quantity) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        lhs, rhs, _ = self._aligned(other)
        return lhs < rhs

    def __hash__(self) -> int:
        return hash((self.mantissa, self.exponent))

    def __float__(self) -> float:
        return float(self.to_fraction())

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Quantity('{self.format()}')"

    def format(self) -> str:
        """Exact text in the quantity's own scale; ``parse`` reads it back unchanged."""
        return _decimal_text(self.to_fraction() / self.scale.factor) + self.scale.label

    def calc_percentage(self, whole: Quantity) -> float:
        """Return ``100 * self / whole`` for display."""
        return float(self.to_fraction() * 100 / whole.to_fraction())

    def adjust_scale(self) -> str:
        """Human-friendly text, e.g. ``1.50Gi``, ``500.0m`` or ``110``.

        Stays in the family the value was written in and moves up from its own
        scale until the shown mantissa drops below the family step.
        """
        if self.is_zero():
            return "0"
        value = self.to_fraction()
        candidates = _display_candidates(self.scale)
        chosen = candidates[-1]
        for scale in candidates:
            if abs(value) / scale.factor < scale.step:
                chosen = scale
                break
        shown = value / chosen.factor
        if self.scale.family is Family.BINARY:
            places = 2
        elif self.scale.family is Family.DECIMAL:
            places = 1
        else:
            places = 0 if shown.denominator == 1 else 2
        return _fixed_text(shown, places) + chosen.label
