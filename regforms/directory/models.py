from dataclasses import dataclass, field
from typing import Any

from regforms.directory.exceptions import DirectoryServiceError


@dataclass(frozen=True)
class DirectoryRecord:
    """A third party as returned by the ERP."""

    id: int
    name: str = ""
    client_code: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: object) -> "DirectoryRecord":
        if not isinstance(payload, dict) or "id" not in payload:
            raise DirectoryServiceError(f"Unexpected third party payload: {payload!r}")
        return cls(
            id=parse_record_id(payload["id"]),
            name=str(payload.get("name") or ""),
            client_code=payload.get("code_client") or None,
            raw=payload,
        )


@dataclass(frozen=True)
class CreatedRecord:
    id: int
    client_code: str | None = None


def parse_record_id(value: object) -> int:
    """The ERP returns ids either as JSON numbers or numeric strings."""
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise DirectoryServiceError(f"Invalid third party id: {value!r}") from exc
