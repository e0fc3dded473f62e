"""Domain-specific exceptions — framework-independent."""


class StorageError(Exception):
    """Base class for every error raised by the storage layer."""


class BackendUnavailableError(StorageError):
    """Raised when the key-value backend cannot be reached or is misconfigured.

    Covers missing/invalid credentials, network failures, timeouts and
    backend-side errors. The storage layer never retries on its own.
    """

    def __init__(self, backend: str, message: str):
        self.backend = backend
        self.message = message
        super().__init__(f"[{backend}] {message}")


class SeedRefusedError(BackendUnavailableError):
    """Raised when seeding is attempted against the non-persistent fallback."""

    def __init__(self, backend: str):
        super().__init__(
            backend,
            "refusing to seed production data: the active backend is the "
            "in-memory fallback and would lose everything on restart",
        )


class EntityNotFoundError(StorageError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class InvalidPayloadError(StorageError):
    """Raised when a record payload is not a plain field mapping or fails validation."""

    def __init__(self, collection: str, message: str):
        self.collection = collection
        self.message = message
        super().__init__(f"Invalid payload for '{collection}': {message}")


class InvalidCollectionError(StorageError):
    """Raised when a collection name cannot be used as a key namespace."""

    def __init__(self, collection: str, reason: str = "invalid collection name"):
        self.collection = collection
        self.reason = reason
        super().__init__(f"{reason}: '{collection}'")


class WrongKeyTypeError(StorageError):
    """Raised when a set operation hits a plain value, or the reverse.

    Typically a legacy index stored as a JSON array; an index rebuild
    rewrites it as a native set.
    """

    def __init__(self, key: str, expected: str):
        self.key = key
        self.expected = expected
        super().__init__(f"key '{key}' does not hold a {expected}; rebuild the index")
