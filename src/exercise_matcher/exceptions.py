class ExerciseMatcherError(Exception):
    """Base exception for the exercise matcher."""


class ConfigurationError(ExerciseMatcherError):
    """Raised when environment configuration is missing or invalid."""


class CatalogValidationError(ExerciseMatcherError):
    """Raised when a catalog source returns a row that fails validation."""
