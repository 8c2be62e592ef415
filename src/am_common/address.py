"""Postal address value object shared by bids, orders and user profiles."""

from dataclasses import asdict, dataclass
from typing import Any

REQUIRED_ADDRESS_FIELDS: tuple[str, ...] = ("street", "city", "state", "postal_code")


@dataclass(frozen=True)
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "India"

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, f).strip() for f in REQUIRED_ADDRESS_FIELDS)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, default_country: str = "India") -> "Address":
        """Build from a JSONB column or request body; missing keys become empty strings."""
        data = data or {}
        return cls(
            street=str(data.get("street") or ""),
            city=str(data.get("city") or ""),
            state=str(data.get("state") or ""),
            postal_code=str(data.get("postal_code") or ""),
            country=str(data.get("country") or default_country),
        )
