class PersonEtlError(RuntimeError):
    pass


class SourceNotFound(PersonEtlError):
    def __init__(self, source: str) -> None:
        super().__init__(f"source not found: {source}")
        self.source = source


class SourceUnreadable(PersonEtlError):
    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"source unreadable: {source} ({reason})")
        self.source = source
        self.reason = reason


class RecordError(PersonEtlError):
    """A single record could not be normalized or checked for duplicates."""

    def __init__(self, raw_text: str, cause: Exception) -> None:
        super().__init__(f"Error processing '{raw_text}': {cause}")
        self.raw_text = raw_text
        self.cause = cause


class WriteFailed(PersonEtlError):
    """Saving record ``index`` of a chunk failed; the chunk was rolled back."""

    def __init__(self, index: int, name: str, cause: Exception) -> None:
        super().__init__(f"Error saving '{name}' (chunk position {index}): {cause}")
        self.index = index
        self.name = name
        self.cause = cause
