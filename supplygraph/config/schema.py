"""Configuration schema definitions using Pydantic for validation.

StoreConfig carries the few knobs the in-memory graph store exposes.
Using Pydantic ensures configuration errors are caught early with clear
error messages.
"""

from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

MAX_NODE_ID = 2**32 - 1


class StoreConfig(BaseModel):
    """Configuration for a GraphStore.

    Attributes:
        timezone: IANA zone every known_since timestamp is normalized to.
        dedup_scan_shorter: Scan the shorter of the two endpoint backlink
            lists when looking for duplicate links.
        id_limit: Largest identifier the node index may allocate.
    """

    timezone: str = "UTC"
    dedup_scan_shorter: bool = True
    id_limit: int = Field(default=MAX_NODE_ID, ge=1, le=MAX_NODE_ID)

    model_config = {"extra": "forbid"}

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate that the timezone is a known IANA zone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{v}'") from exc
        return v

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def default(cls) -> "StoreConfig":
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreConfig":
        """Create configuration from a mapping.

        Accepts either a flat mapping or one nested under a ``store`` table,
        which is how the TOML form is usually written.
        """
        if "store" in data and isinstance(data["store"], dict):
            data = data["store"]
        return cls.model_validate(data)
