"""Fixed-point monetary amount with 4 fractional digits."""

import re
from dataclasses import dataclass
from typing import Any

from pydantic_core import core_schema

from errors import Malformed, NoInput, PrecisionTooHigh

PRECISION = 4
SCALE = 10 ** PRECISION

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True, order=True)
class Amount:
    """Immutable monetary value stored as an integer scaled by ``SCALE``."""

    scaled: int = 0

    @classmethod
    def parse(cls, text: str) -> "Amount":
        """Parse ``[-]digits[.digits]`` with at most 4 fractional digits."""
        if not text:
            raise NoInput("no amount given")

        negative = text.startswith("-")
        body = text[1:] if negative else text
        whole, dot, fraction = body.partition(".")

        if not _DIGITS.fullmatch(whole):
            raise Malformed(f"invalid whole part in amount {text!r}")
        if dot and not _DIGITS.fullmatch(fraction):
            raise Malformed(f"invalid fraction part in amount {text!r}")
        if len(fraction) > PRECISION:
            raise PrecisionTooHigh(
                f"amount {text!r} has {len(fraction)} fractional digits, at most {PRECISION} allowed"
            )

        try:
            scaled = int(whole) * SCALE + int(fraction.ljust(PRECISION, "0"))
        except ValueError as e:
            raise Malformed(f"amount has too many digits ({len(text)} characters)") from e
        return cls(-scaled if negative else scaled)

    @classmethod
    def from_whole(cls, whole: int) -> "Amount":
        return cls(whole * SCALE)

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.scaled + other.scaled)

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.scaled - other.scaled)

    def __mul__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        product = self.scaled * other.scaled
        # truncate toward zero, floor division would round negatives away from it
        quotient = abs(product) // SCALE
        return Amount(-quotient if product < 0 else quotient)

    def __str__(self) -> str:
        sign = "-" if self.scaled < 0 else ""
        whole, fraction = divmod(abs(self.scaled), SCALE)
        if fraction == 0:
            return f"{sign}{whole}"
        digits = f"{fraction:0{PRECISION}d}".rstrip("0")
        return f"{sign}{whole}.{digits}"

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)

    def __repr__(self) -> str:
        return f"Amount('{self}')"

    @classmethod
    def _validate(cls, value: Any) -> "Amount":
        if isinstance(value, Amount):
            return value
        if isinstance(value, bool):
            raise Malformed(f"cannot convert {value!r} to an amount")
        if isinstance(value, int):
            return cls.from_whole(value)
        if isinstance(value, str):
            return cls.parse(value)
        raise Malformed(f"cannot convert {type(value).__name__} to an amount")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


ZERO = Amount(0)

