from datetime import date, datetime

from regforms.documents.models import (
    DATE_FIELDS,
    CanonicalDocumentData,
    DocumentKind,
    Submission,
)

DISPLAY_DATE_FORMAT = "%d-%m-%Y"
_INPUT_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")


def parse_date(value: str) -> date | None:
    """Parse the date shapes the forms send; None when unparsable."""
    text = value.strip()
    if not text:
        return None
    for fmt in _INPUT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_display_date(value: str | None) -> str:
    """Format as DD-MM-YYYY, or "" for absent/unparsable input."""
    if not value:
        return ""
    parsed = parse_date(value)
    return parsed.strftime(DISPLAY_DATE_FORMAT) if parsed else ""


def build_canonical_data(
    submission: Submission,
    reference: str,
    client_reference: str = "",
) -> CanonicalDocumentData:
    """Normalize a submission into template-ready data."""
    values = dict(submission.fields)
    for name in DATE_FIELDS[submission.kind]:
        values[name] = format_display_date(values.get(name))

    offer = submission.get("internet_offer")
    is_company = submission.kind is DocumentKind.COMPANY
    values["offre_particulier"] = "" if is_company else offer
    values["offre_entreprise"] = offer if is_company else ""

    values["contract_id"] = reference
    values["client_reference"] = client_reference
    return CanonicalDocumentData(kind=submission.kind, values=values)
