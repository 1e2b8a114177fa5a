from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from regforms.database.models import DocumentRecord
from regforms.directory.models import DirectoryRecord
from regforms.documents.exceptions import InvalidInputError

LANGUAGES: tuple[str, str] = ("fr", "ar")


class DocumentKind(str, Enum):
    """Subscriber variant. Values are the stored ``document_type`` strings."""

    INDIVIDUAL = "particuliers"
    COMPANY = "entreprise"

    @classmethod
    def parse(cls, value: object) -> "DocumentKind":
        """Accept stored values as well as the English aliases."""
        if isinstance(value, DocumentKind):
            return value
        aliases = {"individual": cls.INDIVIDUAL, "company": cls.COMPANY}
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in aliases:
                return aliases[normalized]
            for kind in cls:
                if kind.value == normalized:
                    return kind
        raise InvalidInputError(
            f"Invalid document type {value!r}. Must be 'particuliers' or 'entreprise'"
        )


INDIVIDUAL_FIELDS: tuple[str, ...] = (
    "Nom",
    "Prenom",
    "Num_CIN",
    "authority",
    "date_delivery",
    "email",
    "mobile",
    "Adresse",
    "place",
    "latitude",
    "longitude",
    "cpe_model",
    "cpe_serial",
    "internet_offer",
    "date",
)

COMPANY_FIELDS: tuple[str, ...] = (
    "raison_sociale",
    "rc",
    "nif",
    "nis",
    "article",
    "Adresse_entreprise",
    "Nom",
    "Prenom",
    "numero_cin_gerant",
    "date_cin_gerant",
    "authority_gerant",
    "mail",
    "mobile_gerant",
    "Adresse",
    "place",
    "latitude",
    "longitude",
    "cpe_model",
    "cpe_serial",
    "internet_offer",
    "Date",
    "date",
)

SUBMISSION_FIELDS: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.INDIVIDUAL: INDIVIDUAL_FIELDS,
    DocumentKind.COMPANY: COMPANY_FIELDS,
}

DATE_FIELDS: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.INDIVIDUAL: ("date", "date_delivery"),
    DocumentKind.COMPANY: ("date", "Date", "date_cin_gerant"),
}

IDENTIFIER_FIELDS: dict[DocumentKind, str] = {
    DocumentKind.INDIVIDUAL: "Num_CIN",
    DocumentKind.COMPANY: "nif",
}

# The company form historically posted the manager's phone without the underscore.
FIELD_ALIASES: dict[str, str] = {"mobilegerant": "mobile_gerant"}

DERIVED_FIELDS: tuple[str, ...] = (
    "contract_id",
    "client_reference",
    "offre_particulier",
    "offre_entreprise",
)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class Submission:
    """Raw form input for one subscriber."""

    kind: DocumentKind
    fields: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, kind: object, payload: object) -> "Submission":
        """Validate the kind and coerce every value to a string.

        Raises:
            InvalidInputError: if the kind is unknown or the payload is not a mapping.
        """
        document_kind = DocumentKind.parse(kind)
        if not isinstance(payload, Mapping):
            raise InvalidInputError("Submission data must be an object")
        if not payload:
            raise InvalidInputError("Submission data is empty")

        values: dict[str, str] = {}
        for key, value in payload.items():
            name = FIELD_ALIASES.get(str(key), str(key))
            if name in values and str(key) != name:
                continue
            values[name] = _as_text(value)
        return cls(kind=document_kind, fields=values)

    def get(self, name: str) -> str:
        return self.fields.get(name, "")

    @property
    def identifier_field(self) -> str:
        return IDENTIFIER_FIELDS[self.kind]

    @property
    def identifier(self) -> str:
        """National id (individual) or tax id (company)."""
        return self.get(self.identifier_field)

    @property
    def display_name(self) -> str:
        if self.kind is DocumentKind.COMPANY:
            return self.get("raison_sociale")
        return f"{self.get('Prenom')} {self.get('Nom')}".strip()


@dataclass(frozen=True)
class CanonicalDocumentData:
    """Template-ready view of a submission.

    ``field`` is a total lookup: any name outside the data resolves to "".
    """

    kind: DocumentKind
    values: Mapping[str, str] = field(default_factory=dict)

    def field(self, name: str) -> str:
        return self.values.get(name, "")

    @property
    def contract_id(self) -> str:
        return self.field("contract_id")

    @property
    def client_reference(self) -> str:
        return self.field("client_reference")

    def with_client_reference(self, client_code: str) -> "CanonicalDocumentData":
        return replace(self, values={**self.values, "client_reference": client_code})

    def context(self) -> dict[str, str]:
        """Every schema field for this kind plus any extra submitted fields."""
        names = (*SUBMISSION_FIELDS[self.kind], *DERIVED_FIELDS)
        context = {name: self.field(name) for name in names}
        for name, value in self.values.items():
            context.setdefault(name, value)
        return context

    def to_payload(self) -> dict[str, str]:
        return dict(self.context())


@dataclass(frozen=True)
class GenerationResult:
    reference: str
    path_fr: str
    path_ar: str
    created_at: datetime | None
    external_id: int | None = None


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Advisory answer for the UI; never a gate."""

    is_duplicate: bool
    directory_match: DirectoryRecord | None = None
    local_matches: list[DocumentRecord] = field(default_factory=list)
