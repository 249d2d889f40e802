"""Tagged numeric value: real, complex, array or polynomial."""
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ValueType(str, Enum):
    REAL = "real"
    COMPLEX = "complex"
    ARRAY = "array"
    POLYNOMIAL = "polynomial"


def _to_decimal(number) -> Decimal:
    if isinstance(number, float):
        return Decimal(repr(number))
    return Decimal(number)


def _plain(d: Decimal) -> str:
    """Format a decimal without exponent notation."""
    text = format(d, "f")
    return "0" if text in ("-0", "0") else text


class Value(BaseModel):
    """
    Immutable result of an evaluation step.

    - ``REAL`` and ``COMPLEX`` use ``real``/``imaginary``
    - ``ARRAY`` holds its elements in ``items``
    - ``POLYNOMIAL`` holds its coefficients in ``items``, constant term first

    ``name`` is set when the value was read from a variable, so that ``->``
    can find the variable to assign.
    """

    model_config = ConfigDict(frozen=True)

    kind: ValueType = Field(..., description="Tag of the variant")
    real: Decimal = Field(default=Decimal(0), description="Real component")
    imaginary: Decimal = Field(default=Decimal(0), description="Imaginary component")
    items: Tuple["Value", ...] = Field(default=(), description="Array elements or polynomial coefficients")
    name: Optional[str] = Field(default=None, description="Variable the value was read from")

    @classmethod
    def from_real(cls, real) -> "Value":
        return cls(kind=ValueType.REAL, real=_to_decimal(real))

    @classmethod
    def from_complex(cls, real, imaginary) -> "Value":
        return cls(kind=ValueType.COMPLEX, real=_to_decimal(real), imaginary=_to_decimal(imaginary))

    @classmethod
    def from_items(cls, items: Iterable["Value"]) -> "Value":
        return cls(kind=ValueType.ARRAY, items=tuple(item.unnamed() for item in items))

    @classmethod
    def from_coefficients(cls, coefficients: Iterable["Value"]) -> "Value":
        """
        Build a polynomial, dropping high-order zero coefficients.

        At least one coefficient is always kept.
        """
        coeffs = [c.unnamed() for c in coefficients]
        while len(coeffs) > 1 and coeffs[-1].is_zero():
            coeffs.pop()
        if not coeffs:
            coeffs = [cls.from_real(0)]
        return cls(kind=ValueType.POLYNOMIAL, items=tuple(coeffs))

    @property
    def is_scalar(self) -> bool:
        return self.kind in (ValueType.REAL, ValueType.COMPLEX)

    @property
    def is_sequence(self) -> bool:
        return self.kind in (ValueType.ARRAY, ValueType.POLYNOMIAL)

    def is_zero(self) -> bool:
        return self.is_scalar and self.real == 0 and self.imaginary == 0

    def named(self, name: str) -> "Value":
        return self.model_copy(update={"name": name})

    def unnamed(self) -> "Value":
        if self.name is None:
            return self
        return self.model_copy(update={"name": None})

    def matches(self, other: "Value") -> bool:
        """
        Value equality ignoring variable names.

        Reals compare by value, complex numbers by both components and
        sequences element by element.
        """
        if self.is_sequence or other.is_sequence:
            if self.kind != other.kind or len(self.items) != len(other.items):
                return False
            return all(a.matches(b) for a, b in zip(self.items, other.items))
        if self.kind == ValueType.REAL and other.kind == ValueType.REAL:
            return self.real == other.real
        return self.real == other.real and self.imaginary == other.imaginary

    def __str__(self) -> str:
        if self.kind == ValueType.ARRAY:
            return "[" + ",".join(str(item) for item in self.items) + "]"
        if self.kind == ValueType.POLYNOMIAL:
            return self._format_polynomial()
        if self.kind == ValueType.REAL or self.imaginary == 0:
            return _plain(self.real)
        text = _plain(self.real) if self.real != 0 else ""
        sign = "+" if self.imaginary > 0 and text else ""
        return f"{text}{sign}{_plain(self.imaginary)}i"

    def _format_polynomial(self) -> str:
        terms = []
        for power in range(len(self.items) - 1, -1, -1):
            coeff = self.items[power]
            if coeff.is_zero() and len(self.items) > 1:
                continue
            text = str(coeff)
            if coeff.kind == ValueType.COMPLEX and coeff.real != 0:
                text = f"({text})"
            if power >= 1:
                text = f"{text}x" if power == 1 else f"{text}x^{power}"
            if terms and not text.startswith("-"):
                text = "+" + text
            terms.append(text)
        return "".join(terms)


Value.model_rebuild()
