"""Domain exception classes for the academy API.

Raised by service-layer and ordering code and caught by controllers
to map to appropriate HTTP responses.
"""


class ModuleNotFoundError(Exception):
    def __init__(self, module_id: str = ""):
        self.module_id = module_id
        super().__init__(f"Module not found: {module_id}")


class ChapterNotFoundError(Exception):
    def __init__(self, chapter_id: str = ""):
        self.chapter_id = chapter_id
        super().__init__(f"Chapter not found: {chapter_id}")


class CategoryNotFoundError(Exception):
    def __init__(self, category_id: str = ""):
        self.category_id = category_id
        super().__init__(f"Category not found: {category_id}")


class UserProfileNotFoundError(Exception):
    def __init__(self, user_id: str = ""):
        self.user_id = user_id
        super().__init__(f"User profile not found: {user_id}")


class AlreadyRegisteredError(Exception):
    """Raised when a learner registers for a module they are already registered in."""


class NotRegisteredError(Exception):
    """Raised when an operation requires a module registration that does not exist."""


class ModuleNotPublishedError(Exception):
    """Raised when a learner targets a module that is not published."""


class SubscriptionRequiredError(Exception):
    """Raised when a free learner registers for any module but the first one."""


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class PreconditionViolationError(Exception):
    """A move or removal referenced an id that is not in the ordered list."""

    def __init__(self, item_id: str = "", container_id: str = ""):
        self.item_id = item_id
        self.container_id = container_id
        super().__init__(f"Item {item_id} is not in ordered list {container_id}")


class PersistenceFailureError(Exception):
    """Any store read/write failure or timeout, cause not further classified."""

    def __init__(self, operation: str = "", detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence failed during {operation}: {detail}")


class ReorderInProgressError(Exception):
    """Raised when a reorder is requested while another is pending or reloading."""

    def __init__(self, container_id: str = ""):
        self.container_id = container_id
        super().__init__(f"A reorder is already in progress for {container_id}")


class StaleOrderError(Exception):
    """Raised when an operation runs on a list whose last reload failed."""

    def __init__(self, container_id: str = ""):
        self.container_id = container_id
        super().__init__(f"Ordered list {container_id} must be reloaded first")
