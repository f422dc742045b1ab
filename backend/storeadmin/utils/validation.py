"""Reusable field validation helpers for the RBAC managers.

Validation is batch style: each helper records problems on a ``Violations`` collector and
returns the cleaned value, so one call can report every bad field at once.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional

from storeadmin.services.errors import FieldViolation, ValidationError

MISSING = object()


class Violations:
    def __init__(self):
        self.items: List[FieldViolation] = []

    def add(self, field: str, message: str):
        self.items.append(FieldViolation(field, message))

    def __bool__(self):
        return bool(self.items)

    def raise_if_any(self):
        if self.items:
            raise ValidationError(self.items)


def clean_text(v: Violations, data: Mapping[str, Any], field: str, required: bool = False, max_len: int = 100,
               lower: bool = False) -> Optional[str]:
    value = data.get(field, MISSING)
    if value is MISSING or value is None:
        if required:
            v.add(field, f'{field} required')
        return None
    if not isinstance(value, str):
        v.add(field, f'{field} must be a string')
        return None
    value = value.strip()
    if not value:
        v.add(field, f'{field} cannot be empty')
        return None
    if len(value) > max_len:
        v.add(field, f'{field} cannot exceed {max_len} characters')
        return None
    return value.lower() if lower else value


def clean_i18n(v: Violations, data: Mapping[str, Any], field: str, max_len: int = 100) -> Optional[Dict[str, str]]:
    """Localized text map: any string tag is accepted, values are trimmed strings."""
    value = data.get(field, MISSING)
    if value is MISSING:
        return None
    if value is None:
        return {}
    if not isinstance(value, dict):
        v.add(field, f'{field} must be an object of language -> text')
        return None
    out: Dict[str, str] = {}
    for tag, text in value.items():
        if not isinstance(tag, str) or not isinstance(text, str):
            v.add(field, f'{field} entries must be strings')
            return None
        if len(text.strip()) > max_len:
            v.add(field, f'{field}.{tag} cannot exceed {max_len} characters')
            return None
        out[tag] = text.strip()
    return out


def clean_bool(v: Violations, data: Mapping[str, Any], field: str) -> Optional[bool]:
    value = data.get(field, MISSING)
    if value is MISSING:
        return None
    if not isinstance(value, bool):
        v.add(field, f'{field} must be a boolean')
        return None
    return value


def clean_int_range(v: Violations, data: Mapping[str, Any], field: str, low: int, high: int,
                    required: bool = False) -> Optional[int]:
    value = data.get(field, MISSING)
    if value is MISSING or value is None:
        if required:
            v.add(field, f'{field} required')
        return None
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        v.add(field, f'{field} must be an integer')
        return None
    if not low <= value <= high:
        v.add(field, f'{field} must be between {low} and {high}')
        return None
    return value


def validate_choice(v: Violations, value: Optional[str], allowed: Iterable[str], field: str) -> Optional[str]:
    if value is None:
        return None
    allowed = list(allowed)
    if value not in allowed:
        v.add(field, f"{field} must be one of: {', '.join(allowed)}")
        return None
    return value


__all__ = ['MISSING', 'Violations', 'clean_text', 'clean_i18n', 'clean_bool', 'clean_int_range', 'validate_choice']
