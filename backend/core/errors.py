"""Error taxonomy shared by the pipelines, stores and API routes."""


class DocuMindError(Exception):
    """Base class for application errors."""


class ValidationError(DocuMindError, ValueError):
    """A required request parameter is missing or malformed (HTTP 400)."""


class JobNotFoundError(DocuMindError, LookupError):
    """Unknown or expired ingestion job id (HTTP 404)."""


class DocumentNotFoundError(DocuMindError, LookupError):
    """No chunks exist for the requested (user, filename) pair (HTTP 404)."""


class EmptyDocumentError(DocuMindError, ValueError):
    """Extraction or chunking produced nothing indexable."""


class IllegalTransitionError(DocuMindError, ValueError):
    """An ingestion job was asked to move along an edge the state machine forbids."""
