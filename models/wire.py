"""
Shared base for models that travel between pipeline stages as JSON.

Upstream documents are produced by a vision model, so key casing is not
guaranteed: "poNumber", "PONumber", "po_number" and "PoNumber" must all land
on the same field. Serialization always uses the camelCase alias.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel


# Optional sign, optional ISO currency code and/or symbol, then the digits
_AMOUNT_RE = re.compile(
    r"(?P<sign>[-+])?\s*(?:[A-Z]{3}\s*)?[$€£¥]?\s*(?P<sign2>[-+])?\s*"
    r"(?P<number>\d[\d,.]*)(?:\s+[A-Z]{3})?"
)


def parse_decimal(value: object) -> Decimal:
    """
    Coerce a loosely formatted number into a Decimal.

    None and blank strings become 0. A currency code or symbol and thousands
    separators are accepted ("$1,234.50" -> 1234.50, "1.234,50" -> 1234.50,
    "USD 99.99" -> 99.99). Anything else that is not a finite number raises
    ValueError: "N/A", "12k", booleans, NaN and infinities are never read as
    an amount.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        # str() avoids carrying binary float noise into the Decimal
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return Decimal("0")
        match = _AMOUNT_RE.fullmatch(text)
        if match is None or (match["sign"] and match["sign2"]):
            raise ValueError(f"not a number: {value!r}")
        negative = "-" in (match["sign"] or "", match["sign2"] or "")
        digits = _normalise_separators(match["number"], value)
        try:
            number = Decimal(("-" if negative else "") + digits)
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")
    else:
        raise ValueError(f"not a number: {value!r}")

    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def _is_grouped(groups: list[str]) -> bool:
    """True for thousands groups such as ["1", "234", "567"]."""
    return (
        1 <= len(groups[0]) <= 3
        and all(g.isdigit() for g in groups)
        and all(len(g) == 3 for g in groups[1:])
    )


def _normalise_separators(number: str, original: object) -> str:
    """Return *number* with thousands separators removed and "." as the decimal point."""
    if "," in number and "." in number:
        decimal_sep = "," if number.rfind(",") > number.rfind(".") else "."
        group_sep = "." if decimal_sep == "," else ","
        whole, _, fraction = number.rpartition(decimal_sep)
        if not fraction or not _is_grouped(whole.split(group_sep)):
            raise ValueError(f"not a number: {original!r}")
        return whole.replace(group_sep, "") + "." + fraction

    if "," in number:
        groups = number.split(",")
        # "12,5" and "12,50" are decimal commas; "1,234" is a thousands group
        if len(groups) == 2 and 1 <= len(groups[1]) <= 2 and groups[0]:
            return f"{groups[0]}.{groups[1]}"
        if _is_grouped(groups):
            return "".join(groups)
        raise ValueError(f"not a number: {original!r}")

    if number.count(".") > 1:
        groups = number.split(".")
        if _is_grouped(groups):
            return "".join(groups)
        raise ValueError(f"not a number: {original!r}")
    return number


def _none_to_zero(value: object) -> object:
    if isinstance(value, bool):
        raise ValueError("boolean is not a count")
    return 0 if value is None else value


def _to_json_number(value: Decimal) -> float:
    return float(value)


# Decimal on the way in, plain JSON number on the way out
Money = Annotated[
    Decimal,
    BeforeValidator(parse_decimal),
    PlainSerializer(_to_json_number, return_type=float, when_used="json"),
]

Count = Annotated[int, BeforeValidator(_none_to_zero)]


class WireModel(BaseModel):
    """camelCase on the wire, case-insensitive on the way in, unknown keys dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup: dict[str, str] = {}
        for name, info in cls.model_fields.items():
            lookup[name.lower()] = name
            lookup[name.replace("_", "").lower()] = name
            if info.alias:
                lookup[info.alias.lower()] = name
        remapped: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            name = lookup.get(key.lower())
            if name is not None:
                remapped[name] = value
        return remapped

    def to_wire(self) -> dict:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)
