# recruitflow/core/exceptions.py
"""
Error taxonomy shared by the services and the API layer.

Every error carries enough context (entity kind, entity id, stage id) for the
API layer to render an actionable message. The HTTP status each one maps to
lives on the class so the exception handlers in ``recruitflow.main`` stay
generic.
"""
from typing import Optional


class RecruitmentError(Exception):
    """Base class for all domain errors"""

    status_code = 500
    error = "recruitment_error"

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        stage_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id
        self.stage_id = stage_id

    def context(self) -> dict:
        """Identifiers of the entity the error refers to"""
        ctx = {}
        if self.entity:
            ctx["entity"] = self.entity
        if self.entity_id:
            ctx["entityId"] = self.entity_id
        if self.stage_id:
            ctx["stageId"] = self.stage_id
        return ctx


class ValidationError(RecruitmentError):
    """Malformed input; never retried automatically"""

    status_code = 422
    error = "validation_error"


class NotFoundError(RecruitmentError):
    """A referenced id is absent from the store"""

    status_code = 404
    error = "not_found"

    @classmethod
    def for_record(cls, kind: str, record_id: str) -> "NotFoundError":
        return cls(f"{kind} record {record_id} not found", entity=kind, entity_id=record_id)


class InvalidStateError(RecruitmentError):
    """The operation is illegal for the current lifecycle state"""

    status_code = 409
    error = "invalid_state"


class ExternalServiceError(RecruitmentError):
    """Question generation or analysis failed or timed out; safe to retry"""

    status_code = 502
    error = "external_service_error"
