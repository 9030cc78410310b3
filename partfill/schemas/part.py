"""PartRecord: Pydantic model for one catalog search result."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Optional[str]:
    """Render a scalar JSON value as cell text; containers and null give ``None``."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


class PartRecord(BaseModel):
    """Normalized attributes of the best catalog match for a part number.

    Built from the first element of the service's ``results`` array by a
    single ``model_validate`` call.  Every member is optional; ``None`` means
    the service did not supply that attribute:

      - manufacturer, description, lifecycle, stock: taken as-is, numbers
        rendered as text.
      - price: ``price.USD``; a ``price`` that is not an object gives ``None``.
      - representative_parts: ``", "``-joined ``partNumber`` values of
        ``representativeParts``.  Entries without a ``partNumber`` are
        dropped; an absent or empty list gives ``""``.

    Unknown keys are ignored (``extra="ignore"``).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    manufacturer: Optional[str] = None
    description: Optional[str] = None
    lifecycle: Optional[str] = None
    price: Optional[str] = None
    stock: Optional[str] = None
    representative_parts: str = Field(default="", alias="representativeParts")

    @field_validator("manufacturer", "description", "lifecycle", "stock", mode="before")
    @classmethod
    def _scalar_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def _usd_price(cls, value: Any) -> Optional[str]:
        if not isinstance(value, dict):
            return None
        return _as_text(value.get("USD"))

    @field_validator("representative_parts", mode="before")
    @classmethod
    def _join_part_numbers(cls, value: Any) -> str:
        if not isinstance(value, list):
            return ""
        numbers = []
        for entry in value:
            if isinstance(entry, dict):
                number = _as_text(entry.get("partNumber"))
                if number is not None:
                    numbers.append(number)
        return ", ".join(numbers)
