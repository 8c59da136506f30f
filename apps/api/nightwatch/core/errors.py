from uuid import UUID


class NightSupervisionError(Exception):
    """Base class for every error the supervision engine raises on purpose."""

    code = "error"
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def payload(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class DuplicateShiftError(NightSupervisionError):
    code = "duplicate_shift"
    status_code = 409

    def __init__(self, existing_id: UUID, detail: str = "A shift already exists for this date, unit and supervisor"):
        super().__init__(detail)
        self.existing_id = existing_id

    def payload(self) -> dict:
        return {**super().payload(), "existing_id": str(self.existing_id)}


class DuplicateCallError(NightSupervisionError):
    code = "duplicate_call"
    status_code = 409

    def __init__(self, existing_id: UUID, detail: str = "This worker already has that call number in the shift"):
        super().__init__(detail)
        self.existing_id = existing_id

    def payload(self) -> dict:
        return {**super().payload(), "existing_id": str(self.existing_id)}


class NotFoundError(NightSupervisionError):
    code = "not_found"
    status_code = 404


class ValidationError(NightSupervisionError):
    code = "validation_error"
    status_code = 422


class NoDataError(NightSupervisionError):
    # "No activity in range" is a 404 too, but with its own code
    code = "no_data"
    status_code = 404


class PermissionDeniedError(NightSupervisionError):
    code = "permission_denied"
    status_code = 403
