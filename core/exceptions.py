class KanbanError(Exception):
    pass


class ApiError(KanbanError):
    """The HTTP collaborator answered with an error or could not be reached."""
    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class LoadError(KanbanError):
    pass


class NotFound(KanbanError):
    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id!r} not found")
        self.kind = kind
        self.entity_id = entity_id


class ValidationError(KanbanError):
    pass


class PersistenceError(KanbanError):
    """A mutation was applied locally but its request failed."""
    def __init__(self, action: str, entity_id: str, cause: Exception):
        super().__init__(f"{action} {entity_id} failed: {cause}")
        self.action = action
        self.entity_id = entity_id
        self.cause = cause
