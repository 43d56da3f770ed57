"""
Exceptions raised by the workspace engine.

Id resolution errors and schema violations are always surfaced to the
caller. Git failures are never raised: they are logged as warnings under
the GitOperationWarning category.
"""


class HoustonError(Exception):
    """Base exception for workspace operations."""

    pass


class NotFoundError(HoustonError):
    """A ticket, sprint or repo does not exist."""

    pass


class UnrecognizedIdError(HoustonError):
    """An id is not in canonical form or its prefix is not a known ticket type."""

    pass


class AmbiguousIdError(HoustonError):
    """A short ticket id matches more than one ticket."""

    def __init__(self, short_id: str, matches: list[str]):
        self.short_id = short_id
        self.matches = matches
        super().__init__(
            f"Short ticket id {short_id} is ambiguous ({len(matches)} matches); "
            f"please use the full canonical id."
        )


class SchemaValidationError(HoustonError):
    """One or more validation rules failed.

    Carries the whole list of violations rather than the first one.
    """

    def __init__(self, errors: list, message: str | None = None):
        self.errors = list(errors)
        if message is None:
            noun = "violation" if len(self.errors) == 1 else "violations"
            message = f"{len(self.errors)} validation {noun}"
        super().__init__(message)


class UnknownSchemaError(HoustonError):
    """A schema key was requested that the registry never loaded."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown schema key: {key}")


class SchemaLoadError(HoustonError):
    """A schema file could not be parsed."""

    pass


class WorkspaceNotDetectedError(HoustonError):
    """No workspace config was found walking up from the working directory."""

    pass


class GitOperationWarning(UserWarning):
    """A git operation failed; the command outcome is unaffected."""

    pass
