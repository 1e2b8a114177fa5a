"""Submission to Dolibarr third-party mapping.

Professional id slots follow the Algerian (DZ) Dolibarr setup:
idprof1=RC, idprof2=NIF, idprof3=AI, idprof4=NIS, idprof5=CIN, idprof6=CIN date.
"""

from typing import Any

from regforms.documents.models import DocumentKind, Submission

COUNTRY_CODE = "DZ"


def _notes(lines: list[str]) -> str:
    return "\n".join(lines)


def _equipment_notes(submission: Submission) -> list[str]:
    return [
        f"CPE: {submission.get('cpe_model')} (S/N: {submission.get('cpe_serial')})",
        f"Offre: {submission.get('internet_offer')}",
        f"Coordonnées: {submission.get('latitude')}, {submission.get('longitude')}",
        f"Lieu: {submission.get('place')}",
    ]


def map_individual(submission: Submission) -> dict[str, Any]:
    return {
        "name": submission.display_name,
        "name_alias": submission.get("Nom"),
        "firstname": submission.get("Prenom"),
        "lastname": submission.get("Nom"),
        "email": submission.get("email"),
        "phone_mobile": submission.get("mobile"),
        "address": submission.get("Adresse"),
        "town": submission.get("place"),
        "country_code": COUNTRY_CODE,
        "client": "1",
        "code_client": "-1",
        "fournisseur": "0",
        "typent_code": "TE_PRIVATE",
        "status": "1",
        "idprof5": submission.get("Num_CIN"),
        "idprof6": submission.get("date_delivery"),
        "note_private": _notes(
            [f"Autorité: {submission.get('authority')}", *_equipment_notes(submission)]
        ),
    }


def map_company(submission: Submission) -> dict[str, Any]:
    manager = f"{submission.get('Prenom')} {submission.get('Nom')}".strip()
    return {
        "name": submission.get("raison_sociale"),
        "name_alias": submission.get("raison_sociale"),
        "firstname": submission.get("Prenom"),
        "lastname": submission.get("Nom"),
        "email": submission.get("mail"),
        "phone_mobile": submission.get("mobile_gerant"),
        "address": submission.get("Adresse_entreprise"),
        "town": submission.get("place"),
        "country_code": COUNTRY_CODE,
        "idprof1": submission.get("rc"),
        "idprof2": submission.get("nif"),
        "idprof3": submission.get("article"),
        "idprof4": submission.get("nis"),
        "idprof5": submission.get("numero_cin_gerant"),
        "idprof6": submission.get("date_cin_gerant"),
        "client": "1",
        "code_client": "-1",
        "fournisseur": "0",
        "typent_code": "TE_SMALL",
        "status": "1",
        "price_level": "2",
        "cond_reglement_code": "RECEP",
        "mode_reglement_code": "LIQ",
        "fk_account": "1",
        "note_private": _notes(
            [
                f"Gérant: {manager}",
                f"Autorité CIN: {submission.get('authority_gerant')}",
                f"Adresse installation: {submission.get('Adresse')}",
                *_equipment_notes(submission),
            ]
        ),
    }


def map_submission(submission: Submission, reference: str) -> dict[str, Any]:
    """Build the third-party payload and append the contract reference to the notes."""
    if submission.kind is DocumentKind.COMPANY:
        payload = map_company(submission)
    else:
        payload = map_individual(submission)
    payload["note_private"] += f"\nRéférence contrat: {reference}"
    return payload
