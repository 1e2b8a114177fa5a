from pathlib import Path

import pytest

from regforms.documents.models import DocumentKind
from regforms.templating.renderer import TemplateRenderer
from tests.docx_helpers import write_docx

INDIVIDUAL_TEMPLATE = [
    "Contrat N° {{ contract_id }}",
    "Code client: {{ client_reference }}",
    "Nom: {{ Nom }} Prénom: {{ Prenom }}",
    "CIN: {{ Num_CIN }} délivrée le {{ date_delivery }} par {{ authority }}",
    "Offre: {{ offre_particulier }}",
    "Fait le {{ date }}",
    "Remarque: {{ remarque }}",
]

INDIVIDUAL_TEMPLATE_AR = [
    "رقم العقد {{ contract_id }}",
    "رمز الزبون {{ client_reference }}",
    "اللقب {{ Nom }} الاسم {{ Prenom }}",
    "العرض {{ offre_particulier }}",
]

COMPANY_TEMPLATE = [
    "Contrat N° {{ contract_id }}",
    "Code client: {{ client_reference }}",
    "Raison sociale: {{ raison_sociale }}",
    "RC {{ rc }} NIF {{ nif }} NIS {{ nis }} AI {{ article }}",
    "Gérant: {{ Prenom }} {{ Nom }} CIN {{ numero_cin_gerant }} du {{ date_cin_gerant }}",
    "Offre: {{ offre_entreprise }}",
]

COMPANY_TEMPLATE_AR = [
    "رقم العقد {{ contract_id }}",
    "الشركة {{ raison_sociale }}",
    "العرض {{ offre_entreprise }}",
]

TEMPLATE_LINES: dict[tuple[DocumentKind, str], list[str]] = {
    (DocumentKind.INDIVIDUAL, "fr"): INDIVIDUAL_TEMPLATE,
    (DocumentKind.INDIVIDUAL, "ar"): INDIVIDUAL_TEMPLATE_AR,
    (DocumentKind.COMPANY, "fr"): COMPANY_TEMPLATE,
    (DocumentKind.COMPANY, "ar"): COMPANY_TEMPLATE_AR,
}


@pytest.fixture()
def template_dir(tmp_path: Path) -> Path:
    """Directory holding all four templates under their configured file names."""
    directory = tmp_path / "templates"
    directory.mkdir()
    for key, name in TemplateRenderer.TEMPLATE_FILES.items():
        write_docx(directory / name, TEMPLATE_LINES[key])
    return directory


@pytest.fixture()
def renderer(template_dir: Path) -> TemplateRenderer:
    return TemplateRenderer.from_directory(template_dir)


@pytest.fixture()
def individual_payload() -> dict[str, str]:
    return {
        "Nom": "Benali",
        "Prenom": "Yacine",
        "Num_CIN": "109876543",
        "authority": "Daira de Bab Ezzouar",
        "date_delivery": "2019-03-07",
        "email": "y.benali@example.dz",
        "mobile": "0550123456",
        "Adresse": "12 rue des Oliviers",
        "place": "Alger",
        "latitude": "36.7213",
        "longitude": "3.1870",
        "cpe_model": "Huawei B310",
        "cpe_serial": "SN-0001",
        "internet_offer": "Fibre 50M",
        "date": "2026-10-19",
    }


@pytest.fixture()
def company_payload() -> dict[str, str]:
    return {
        "raison_sociale": "Sarl Atlas Net",
        "rc": "16/00-1234567B19",
        "nif": "001916123456789",
        "nis": "091916010012345",
        "article": "16010123456",
        "Adresse_entreprise": "Zone industrielle, lot 4",
        "Nom": "Haddad",
        "Prenom": "Samira",
        "numero_cin_gerant": "201234567",
        "date_cin_gerant": "2020-01-15",
        "authority_gerant": "Commune de Oran",
        "mail": "contact@atlas.dz",
        "mobilegerant": "0661000000",
        "Adresse": "Cité 200 logements",
        "place": "Oran",
        "latitude": "35.69",
        "longitude": "-0.63",
        "cpe_model": "ZTE MF286",
        "cpe_serial": "SN-9",
        "internet_offer": "Pro 100M",
        "Date": "2026-10-19",
        "date": "2026-10-19",
    }
