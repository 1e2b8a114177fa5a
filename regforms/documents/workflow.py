from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path

from regforms.config.settings import Settings
from regforms.database.connection import Database
from regforms.database.models import DocumentPage, DocumentRecord
from regforms.database.repositories.document_repository import DocumentRepository
from regforms.directory.dolibarr_client import DolibarrClient
from regforms.directory.models import DirectoryRecord
from regforms.documents.exceptions import DocumentNotFoundError, InvalidInputError
from regforms.documents.file_store import FileStore
from regforms.documents.models import (
    LANGUAGES,
    DocumentKind,
    DuplicateCheckResult,
    GenerationResult,
    Submission,
)
from regforms.documents.pipeline import GenerationContext, PipelineStep, WorkflowState
from regforms.documents.reference import ReferenceGenerator
from regforms.documents.steps import (
    BuildCanonicalDataStep,
    InsertRecordStep,
    LoadExistingStep,
    PersistFilesStep,
    PreflightRenderStep,
    RegisterClientStep,
    RemoveOldFilesStep,
    RenderDocumentsStep,
    UpdateRecordStep,
    ValidateInputStep,
)
from regforms.logging.logger import Log
from regforms.templating.renderer import TemplateRenderer

DUPLICATE_MATCH_LIMIT = 5


class DocumentWorkflow:
    """Orchestrates document generation, regeneration, duplicate checks and removal.

    Generate: validate -> canonicalize -> pre-flight render -> directory
    registration (best-effort) -> render -> write files -> insert row.
    Update reuses the stored reference and never calls the directory.
    """

    def __init__(
        self,
        *,
        renderer: TemplateRenderer,
        file_store: FileStore,
        doc_repo: DocumentRepository,
        directory: DolibarrClient,
        reference_generator: ReferenceGenerator,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._file_store = file_store
        self._doc_repo = doc_repo
        self._directory = directory
        self._clock = clock

        self._generate_steps: list[PipelineStep] = [
            ValidateInputStep(),
            BuildCanonicalDataStep(reference_generator),
            PreflightRenderStep(renderer),
            RegisterClientStep(directory),
            RenderDocumentsStep(renderer),
            PersistFilesStep(file_store),
            InsertRecordStep(doc_repo),
        ]
        self._update_steps: list[PipelineStep] = [
            LoadExistingStep(doc_repo),
            ValidateInputStep(),
            BuildCanonicalDataStep(reference_generator),
            PreflightRenderStep(renderer),
            RemoveOldFilesStep(file_store),
            RenderDocumentsStep(renderer),
            PersistFilesStep(file_store),
            UpdateRecordStep(doc_repo),
        ]

    @property
    def directory(self) -> DolibarrClient:
        return self._directory

    def generate(self, kind: object, submission: object) -> GenerationResult:
        """Generate both language documents for a new submission."""
        context = GenerationContext(
            operation="generate",
            timestamp=self._clock(),
            raw_kind=kind,
            payload=submission,
        )
        context = self._run(self._generate_steps, context)
        assert context.record is not None
        Log.info(f"Generated documents {context.reference}", external_id=context.external_id)
        return GenerationResult(
            reference=context.reference,
            path_fr=context.paths["fr"],
            path_ar=context.paths["ar"],
            created_at=context.record.created_at,
            external_id=context.external_id,
        )

    def update(self, reference: str, submission: object) -> DocumentRecord:
        """Regenerate an existing document pair from new data, keeping its reference."""
        context = GenerationContext(
            operation="update",
            timestamp=self._clock(),
            reference=reference,
            payload=submission,
        )
        context = self._run(self._update_steps, context)
        assert context.record is not None
        Log.info(f"Regenerated documents {reference}")
        return context.record

    def check_duplicate(self, kind: object, submission: object) -> DuplicateCheckResult:
        """Advisory lookup in the directory and local history. Never raises."""
        try:
            parsed = Submission.from_payload(kind, submission)
        except InvalidInputError as exc:
            Log.warning(f"Duplicate check skipped: {exc}")
            return DuplicateCheckResult(is_duplicate=False)

        identifier = parsed.identifier
        if not identifier:
            return DuplicateCheckResult(is_duplicate=False)

        directory_match = self._search_directory(parsed)
        local_matches: list[DocumentRecord] = []
        try:
            local_matches = self._doc_repo.find_recent_by_identifier(
                parsed.identifier_field, identifier, limit=DUPLICATE_MATCH_LIMIT
            )
        except Exception as exc:
            Log.warning(f"Local duplicate lookup failed: {exc}")

        return DuplicateCheckResult(
            is_duplicate=directory_match is not None or bool(local_matches),
            directory_match=directory_match,
            local_matches=local_matches,
        )

    def delete(self, reference: str) -> None:
        """Remove a document's files (best-effort) and its row."""
        record = self.get(reference)
        for language in LANGUAGES:
            self._file_store.delete(record.file_path(language))
        self._doc_repo.delete(reference)
        Log.info(f"Deleted document {reference}")

    def get(self, reference: str) -> DocumentRecord:
        record = self._doc_repo.find_by_reference(reference)
        if record is None:
            raise DocumentNotFoundError(f"Document {reference} not found")
        return record

    def list_documents(
        self,
        document_type: str | None = None,
        start_date: date | datetime | None = None,
        end_date: date | datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> DocumentPage:
        if document_type:
            document_type = DocumentKind.parse(document_type).value
        if limit <= 0 or offset < 0:
            raise InvalidInputError("limit must be positive and offset non-negative")
        return self._doc_repo.list_documents(
            document_type=document_type,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )

    def document_file(self, reference: str, language: str) -> Path:
        """Locate the file to download for one language variant."""
        if language not in LANGUAGES:
            raise InvalidInputError(f"Invalid language '{language}'. Must be 'fr' or 'ar'")
        record = self.get(reference)
        stored = record.file_path(language)
        if stored and self._file_store.exists(stored):
            return self._file_store.resolve(stored)
        found = self._file_store.find(reference, language)
        if found is None:
            raise DocumentNotFoundError(f"File for {reference} ({language}) not found on server")
        return found

    def _search_directory(self, submission: Submission) -> DirectoryRecord | None:
        try:
            if submission.kind is DocumentKind.COMPANY:
                return self._directory.search_by_tax_id(
                    submission.identifier, fallback_name=submission.get("raison_sociale")
                )
            return self._directory.search_by_national_id(submission.identifier)
        except Exception as exc:
            Log.warning(f"Directory duplicate lookup failed: {exc}")
            return None

    @staticmethod
    def _run(steps: list[PipelineStep], context: GenerationContext) -> GenerationContext:
        try:
            for step in steps:
                context = step.run(context)
        except Exception as exc:
            failed_in = context.state.value
            context.state = WorkflowState.ABORTED
            Log.error(
                f"{context.operation} aborted during {failed_in}: {exc}",
                reference=context.reference or "-",
            )
            raise
        context.state = WorkflowState.DONE
        return context


def build_workflow(settings: Settings, database: Database) -> DocumentWorkflow:
    """Build a DocumentWorkflow with all required adapters."""
    return DocumentWorkflow(
        renderer=TemplateRenderer.from_settings(settings),
        file_store=FileStore(settings.generated_dir),
        doc_repo=DocumentRepository(database),
        directory=DolibarrClient.from_settings(settings),
        reference_generator=ReferenceGenerator(settings.reference_prefix),
    )
