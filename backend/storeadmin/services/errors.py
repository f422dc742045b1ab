"""Error kinds raised by the RBAC core.

All three are raised synchronously to the caller; the core never retries and never
leaves a partial write behind. The HTTP layer maps ``status`` onto the response code.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def to_dict(self):
        return {'field': self.field, 'message': self.message}


class RbacError(Exception):
    status = 500
    title = 'RBAC Error'


class ValidationError(RbacError):
    """One or more input fields violate a constraint.

    Carries every violation found, so a form can highlight all of them at once.
    """
    status = 400
    title = 'Bad Request'

    def __init__(self, violations: Iterable[FieldViolation]):
        self.violations: List[FieldViolation] = list(violations)
        fields = ', '.join(v.field for v in self.violations)
        super().__init__(f"Invalid fields: {fields}")

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]


class ConflictError(RbacError):
    status = 409
    title = 'Conflict'


class NotFoundError(RbacError):
    status = 404
    title = 'Not Found'


__all__ = ['FieldViolation', 'RbacError', 'ValidationError', 'ConflictError', 'NotFoundError']
