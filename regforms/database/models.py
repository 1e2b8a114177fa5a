from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    reference: str
    document_type: str
    user_data: dict[str, Any]
    file_path_fr: str
    file_path_ar: str
    id: int | None = None
    dolibarr_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DocumentRecord":
        return cls(
            id=row.get("id"),
            reference=row["reference"],
            document_type=row["document_type"],
            user_data=row.get("user_data") or {},
            file_path_fr=row["file_path_fr"],
            file_path_ar=row["file_path_ar"],
            dolibarr_id=row.get("dolibarr_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def file_path(self, language: str) -> str:
        return self.file_path_fr if language == "fr" else self.file_path_ar


@dataclass
class DocumentPage:
    """One page of documents plus the unpaginated total."""

    documents: list[DocumentRecord] = field(default_factory=list)
    total: int = 0
    limit: int = 20
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


@dataclass
class LookupItem:
    """Represents a row from the cpe_models or internet_offers tables."""

    id: int
    name: str
    created_at: datetime | None = None
