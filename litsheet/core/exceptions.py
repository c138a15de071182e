"""Application exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class CompletionServiceError(APIClientError):
    """Raised when the AI completion service cannot produce an answer."""
    pass


class ExtractionParseError(AppError):
    """Raised when AI output cannot be parsed into a cell."""
    pass


class DocumentUnavailableError(AppError):
    """Raised when the corpus has no extractable text for a document."""
    def __init__(self, document_id: str, message: str = None):
        super().__init__(message or f"No text available for document {document_id}")
        self.document_id = document_id


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class PersistenceError(DatabaseError):
    """Raised when a sheet write to the store fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class CellValueError(ValidationError):
    """Raised when a value does not match its column type."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class ExtractionConfigurationError(ValidationError):
    """Raised when a run cannot start, e.g. the sheet has no columns."""
    pass


class ExtractionInProgressError(AppError):
    """Raised when a run is requested while the sheet's engine is busy."""
    def __init__(self, sheet_id: str):
        super().__init__(f"An extraction run is already in progress for sheet {sheet_id}")
        self.sheet_id = sheet_id


class SheetReadOnlyError(AppError):
    """Raised when a mutation is attempted while a version is previewed."""
    pass


class SheetInvariantError(AppError):
    """Raised on programmer-level invariant violations in the sheet model."""
    pass


class NotFoundError(AppError):
    """Base class for missing entities."""
    pass


class SheetNotFoundError(NotFoundError):
    pass


class RowNotFoundError(NotFoundError):
    pass


class ColumnNotFoundError(NotFoundError):
    pass


class VersionNotFoundError(NotFoundError):
    pass


class PresetNotFoundError(NotFoundError):
    pass
