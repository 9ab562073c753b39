class NotFoundError(Exception):
    """Requested document does not exist or is not publicly visible."""

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class InvalidIdError(ValueError):
    def __init__(self, value):
        super().__init__(f"Invalid ID format: {value!r}")
        self.value = value


class ConflictError(ValueError):
    """Write refused because other documents still depend on the target."""
