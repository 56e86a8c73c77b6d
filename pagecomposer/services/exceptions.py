"""
Errors raised inside composition stages.

Stage services raise these internally and convert them to structured
StageResult objects at their public boundary, so callers can retry a
single stage without restarting the pipeline.
"""

from typing import List, Optional


class CompositionError(Exception):
    """Base class for page composition errors."""

    error_kind = "composition_error"

    def __init__(self, message: str, document_id: Optional[str] = None):
        self.document_id = document_id
        super().__init__(message)


class DocumentNotFound(CompositionError):
    """No stored content exists for the document."""

    error_kind = "document_not_found"

    def __init__(self, document_id: str, detail: Optional[str] = None):
        message = f"Document {document_id} not found or has no content"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, document_id=document_id)


class MalformedDocument(CompositionError):
    """The document lacks exactly one <head> and one <body>."""

    error_kind = "malformed_document"

    def __init__(self, reason: str, preview: str = "", document_id: Optional[str] = None):
        self.reason = reason
        self.preview = preview
        super().__init__(f"Invalid HTML structure: {reason}", document_id=document_id)


class NoSectionsError(CompositionError):
    """The assembler has nothing to combine."""

    error_kind = "no_sections"

    def __init__(self, document_id: str):
        super().__init__(
            f"No sections found for document {document_id}. "
            f"Generate sections before assembling.",
            document_id=document_id,
        )


class InvalidSectionContent(CompositionError):
    """One or more sections hold empty, truncated or placeholder HTML."""

    error_kind = "invalid_section_content"

    def __init__(self, document_id: str, missing_or_invalid: List[str]):
        self.missing_or_invalid = list(missing_or_invalid)
        super().__init__(
            f"Invalid section content detected: {', '.join(self.missing_or_invalid)}. "
            f"Regenerate the full HTML for these sections and assemble again.",
            document_id=document_id,
        )


class MissingLayoutFragment(CompositionError):
    """A header/footer fragment could not be found. Never fatal."""

    error_kind = "missing_layout_fragment"

    def __init__(self, kind: str, owner_id: Optional[str], project_id: Optional[str]):
        self.kind = kind
        self.owner_id = owner_id
        self.project_id = project_id
        super().__init__(
            f"No {kind} found for owner={owner_id} project={project_id}"
        )
