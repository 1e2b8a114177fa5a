from regforms.database.repositories.document_repository import DocumentRepository
from regforms.directory.dolibarr_client import DolibarrClient
from regforms.documents.canonical import build_canonical_data
from regforms.documents.exceptions import (
    DocumentNotFoundError,
    RenderError,
    StoreWriteError,
    TemplateNotFoundError,
    TemplateSyntaxError,
)
from regforms.documents.file_store import FileStore
from regforms.documents.models import LANGUAGES, Submission
from regforms.documents.pipeline import GenerationContext, PipelineStep, WorkflowState
from regforms.documents.reference import ReferenceGenerator
from regforms.logging.logger import Log
from regforms.templating.renderer import TemplateRenderer


class LoadExistingStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: GenerationContext) -> GenerationContext:
        existing = self._doc_repo.find_by_reference(context.reference)
        if existing is None:
            raise DocumentNotFoundError(f"Document {context.reference} not found")
        context.existing = existing
        context.raw_kind = existing.document_type
        context.client_reference = str(existing.user_data.get("client_reference") or "")
        return context


class ValidateInputStep(PipelineStep):
    def run(self, context: GenerationContext) -> GenerationContext:
        context.state = WorkflowState.VALIDATING
        context.submission = Submission.from_payload(context.raw_kind, context.payload)
        return context


class BuildCanonicalDataStep(PipelineStep):
    """Assigns the reference on first generation; updates keep the stored one."""

    def __init__(self, reference_generator: ReferenceGenerator) -> None:
        self._reference_generator = reference_generator

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.submission is None:
            raise ValueError("GenerationContext.submission must be set before canonicalization")
        if not context.reference:
            context.reference = self._reference_generator.generate(context.timestamp)
        context.data = build_canonical_data(
            context.submission,
            context.reference,
            client_reference=context.client_reference,
        )
        return context


class PreflightRenderStep(PipelineStep):
    """Renders every variant once so template errors surface before side effects."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self._renderer = renderer

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.submission is None or context.data is None:
            raise ValueError("GenerationContext.data must be set before pre-flight rendering")
        self._renderer.validate(context.submission.kind, context.data)
        Log.info(f"Templates validated for {context.reference}")
        return context


class RegisterClientStep(PipelineStep):
    """Best-effort directory registration; never aborts the workflow."""

    def __init__(self, directory: DolibarrClient) -> None:
        self._directory = directory

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.submission is None or context.data is None:
            raise ValueError("GenerationContext.data must be set before client registration")
        context.state = WorkflowState.EXTERNAL_LOOKUP
        try:
            created = self._directory.create_record(context.submission, context.reference)
        except Exception as exc:
            Log.warning(f"Directory registration failed for {context.reference}: {exc}")
            return context

        if created is None:
            Log.info(f"No directory record for {context.reference}")
            return context
        context.external_id = created.id
        if created.client_code:
            context.client_reference = created.client_code
            context.data = context.data.with_client_reference(created.client_code)
        return context


class RenderDocumentsStep(PipelineStep):
    def __init__(self, renderer: TemplateRenderer) -> None:
        self._renderer = renderer

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.submission is None or context.data is None:
            raise ValueError("GenerationContext.data must be set before rendering")
        context.state = WorkflowState.RENDERING
        documents: dict[str, bytes] = {}
        for language in LANGUAGES:
            try:
                documents[language] = self._renderer.render(
                    context.submission.kind, language, context.data
                )
            except (TemplateNotFoundError, TemplateSyntaxError) as exc:
                raise RenderError(f"Final rendering of {language} failed: {exc}") from exc
        context.documents = documents
        Log.info(f"Rendered {len(documents)} documents for {context.reference}")
        return context


class RemoveOldFilesStep(PipelineStep):
    def __init__(self, file_store: FileStore) -> None:
        self._file_store = file_store

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.existing is None:
            raise ValueError("GenerationContext.existing must be set before removing files")
        for language in LANGUAGES:
            self._file_store.delete(context.existing.file_path(language))
        return context


class PersistFilesStep(PipelineStep):
    def __init__(self, file_store: FileStore) -> None:
        self._file_store = file_store

    def run(self, context: GenerationContext) -> GenerationContext:
        context.state = WorkflowState.PERSISTING
        try:
            for language, content in context.documents.items():
                context.paths[language] = self._file_store.write(
                    context.reference, language, content, context.timestamp
                )
        except OSError as exc:
            raise StoreWriteError(f"Failed to write files for {context.reference}: {exc}") from exc
        Log.info(f"Saved files for {context.reference}", paths=context.paths)
        return context


class InsertRecordStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.submission is None or context.data is None:
            raise ValueError("GenerationContext.data must be set before inserting a record")
        context.record = self._doc_repo.insert(
            reference=context.reference,
            document_type=context.submission.kind.value,
            user_data=context.data.to_payload(),
            file_path_fr=context.paths["fr"],
            file_path_ar=context.paths["ar"],
            dolibarr_id=context.external_id,
        )
        return context


class UpdateRecordStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: GenerationContext) -> GenerationContext:
        if context.data is None:
            raise ValueError("GenerationContext.data must be set before updating a record")
        context.record = self._doc_repo.update(
            reference=context.reference,
            user_data=context.data.to_payload(),
            file_path_fr=context.paths["fr"],
            file_path_ar=context.paths["ar"],
        )
        return context
