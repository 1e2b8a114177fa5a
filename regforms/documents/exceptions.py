class RegFormsError(Exception):
    """Base exception for all document workflow errors."""


class InvalidInputError(RegFormsError):
    """Raised when the document kind or the submission payload is malformed."""


class TemplateNotFoundError(RegFormsError):
    """Raised when a configured template resource is missing."""


class TemplateSyntaxError(RegFormsError):
    """Raised when a template cannot be parsed.

    ``errors`` lists every offending placeholder expression found.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = list(errors or [])
        detail = "; ".join(self.errors)
        super().__init__(f"{message}: {detail}" if detail else message)


class RenderError(RegFormsError):
    """Raised when a template fails to render for reasons other than syntax."""


class StoreWriteError(RegFormsError):
    """Raised when a document row cannot be written."""


class DocumentNotFoundError(RegFormsError):
    """Raised when a document reference does not exist."""
