"""Domain exception classes for business logic errors."""


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    pass


class ResourceNotFoundError(DomainError):
    """Raised when a requested resource cannot be found."""

    pass


class ResourceExistsError(DomainError):
    """Raised when attempting to create a resource that already exists."""

    pass


class ValidationError(DomainError):
    """Raised when data validation fails."""

    pass


class DuplicateMemberError(ResourceExistsError):
    """Raised when a document is added to a note set it already belongs to."""

    def __init__(self, note_set_id: int, document_id: int):
        self.note_set_id = note_set_id
        self.document_id = document_id
        super().__init__(f"Document {document_id} is already in note set {note_set_id}")


class ConfigurationMissingError(DomainError):
    """Raised when a required external service has no credentials configured."""

    pass


class RemoteServiceError(DomainError):
    """Raised when an external service returns an error or a malformed response."""

    pass


class RemoteServiceTimeoutError(DomainError):
    """Raised when polling an external operation exceeds its attempt budget."""

    pass


class RecognitionUnavailableError(ConfigurationMissingError):
    """Text recognition is not configured."""

    pass


class RecognitionFailedError(RemoteServiceError):
    """The text recognition service failed to process the image."""

    pass


class RecognitionTimeoutError(RemoteServiceTimeoutError):
    """The text recognition result did not arrive within the poll budget."""

    pass


class IngestionFailedError(DomainError):
    """Raised when a single uploaded file could not be turned into a document."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Failed to process {filename}: {reason}")
