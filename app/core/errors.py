from fastapi import HTTPException, status


class AppError(HTTPException):
    """Structured application error carrying an HTTP status code and a message.

    Services raise these directly; the API layer renders them into the
    JSON error envelope.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(status_code=status_code, detail=message)

    @property
    def message(self) -> str:
        return str(self.detail)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, message)


class BadRequestError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, message)


class ConflictError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(status.HTTP_409_CONFLICT, message)


class ForbiddenError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(status.HTTP_403_FORBIDDEN, message)


# --- Category tree guards ---

class ParentNotFoundError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("Parent category not found")


class SelfParentError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("Category cannot be its own parent")


class CycleDetectedError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("Cannot move under its own subtree")


class HasChildrenError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("Cannot hard-delete: category has children")


class NameTakenError(BadRequestError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Category '{name}' already exists under this parent.")


class SlugTakenError(BadRequestError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Slug '{slug}' is already in use.")
