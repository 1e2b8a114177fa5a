from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from regforms.database.models import DocumentRecord
from regforms.documents.models import CanonicalDocumentData, Submission


class WorkflowState(str, Enum):
    VALIDATING = "validating"
    EXTERNAL_LOOKUP = "external_lookup"
    RENDERING = "rendering"
    PERSISTING = "persisting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(slots=True)
class GenerationContext:
    """Carries one generate/update call through its steps.

    ``timestamp`` is captured once when the call starts and drives both the
    reference date and the output directory.
    """

    operation: str
    timestamp: datetime
    raw_kind: object = None
    payload: object = None
    reference: str = ""
    client_reference: str = ""
    state: WorkflowState = WorkflowState.VALIDATING
    submission: Submission | None = None
    data: CanonicalDocumentData | None = None
    existing: DocumentRecord | None = None
    external_id: int | None = None
    documents: dict[str, bytes] = field(default_factory=dict)
    paths: dict[str, str] = field(default_factory=dict)
    record: DocumentRecord | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: GenerationContext) -> GenerationContext:
        raise NotImplementedError
