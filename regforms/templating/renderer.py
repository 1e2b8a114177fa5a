import io
import zipfile
from collections.abc import Mapping
from pathlib import Path
from typing import ClassVar

import jinja2
from docxtpl import DocxTemplate

from regforms.config.settings import Settings
from regforms.documents.exceptions import RenderError, TemplateNotFoundError, TemplateSyntaxError
from regforms.documents.models import LANGUAGES, CanonicalDocumentData, DocumentKind

TemplateKey = tuple[DocumentKind, str]

# Fixed member timestamp so that equal input renders to identical bytes.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _repack(content: bytes) -> bytes:
    source = zipfile.ZipFile(io.BytesIO(content))
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            member = zipfile.ZipInfo(info.filename, date_time=_ZIP_EPOCH)
            member.compress_type = zipfile.ZIP_DEFLATED
            member.external_attr = info.external_attr
            target.writestr(member, source.read(info.filename))
    return buffer.getvalue()


class TemplateRenderer:
    """Fills Word templates with canonical document data."""

    TEMPLATE_FILES: ClassVar[dict[TemplateKey, str]] = {
        (DocumentKind.INDIVIDUAL, "fr"): "MODELE Particuliers.docx",
        (DocumentKind.INDIVIDUAL, "ar"): "MODELE Particuliers AR.docx",
        (DocumentKind.COMPANY, "fr"): "MODEL ENTREPRISE.docx",
        (DocumentKind.COMPANY, "ar"): "MODEL ENTREPRISE AR.docx",
    }

    def __init__(self, templates: Mapping[TemplateKey, Path]) -> None:
        self._templates = dict(templates)

    @classmethod
    def from_directory(cls, directory: Path) -> "TemplateRenderer":
        """Use the standard template file names inside one directory."""
        return cls({key: directory / name for key, name in cls.TEMPLATE_FILES.items()})

    @classmethod
    def from_settings(cls, settings: Settings) -> "TemplateRenderer":
        return cls.from_directory(settings.templates_dir)

    def template_path(self, kind: DocumentKind, language: str) -> Path:
        """Resolve the configured template file.

        Raises:
            TemplateNotFoundError: if the mapping has no entry or the file is missing.
        """
        path = self._templates.get((kind, language))
        if path is None:
            raise TemplateNotFoundError(
                f"No template configured for {kind.value}/{language}"
            )
        if not path.is_file():
            raise TemplateNotFoundError(f"Template not found: {path}")
        return path

    def render(
        self, kind: DocumentKind, language: str, data: CanonicalDocumentData
    ) -> bytes:
        """Render one language variant and return the .docx bytes.

        Placeholders naming absent fields render as empty strings.

        Raises:
            TemplateNotFoundError: if the template resource is missing.
            TemplateSyntaxError: if the template contains malformed expressions.
            RenderError: on any other rendering failure.
        """
        path = self.template_path(kind, language)
        environment = jinja2.Environment(undefined=jinja2.ChainableUndefined, autoescape=True)
        try:
            template = DocxTemplate(io.BytesIO(path.read_bytes()))
            template.render(data.context(), jinja_env=environment)
            output = io.BytesIO()
            template.save(output)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateSyntaxError(
                f"Invalid template {path.name}", errors=self._describe(exc)
            ) from exc
        except Exception as exc:
            raise RenderError(f"Rendering {path.name} failed: {exc}") from exc
        return _repack(output.getvalue())

    def validate(self, kind: DocumentKind, data: CanonicalDocumentData) -> None:
        """Render every language variant and discard the output."""
        for language in LANGUAGES:
            self.render(kind, language, data)

    @staticmethod
    def _describe(exc: jinja2.TemplateSyntaxError) -> list[str]:
        errors = [f"line {exc.lineno}: {exc.message}"]
        context = getattr(exc, "docx_context", None) or []
        errors.extend(line.strip() for line in context if line and line.strip())
        return errors
