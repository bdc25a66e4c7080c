"""Changesets: validated, applyable diffs for a record.

Learn: A changeset pairs a record (``data``) with the proposed ``changes``
cast from user input (``params``). Validators attach per-field errors
instead of raising. The repo only writes a changeset when it is valid;
otherwise it hands the changeset back inside ``Err`` so the caller can
show ``errors``.

Input params may use string or attribute-name keys. Blank strings cast
to None. Only permitted keys are cast; everything else is ignored.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ValidationError


@dataclass
class Changeset:
    """A proposed set of changes to ``data``."""

    data: Any
    params: dict[str, Any] = field(default_factory=dict)
    changes: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)
    action: Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.errors

    # ─── Field access ───────────────────────────────────

    def get_change(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)

    def get_field(self, name: str, default: Any = None) -> Any:
        """Proposed value if changed, else the record's current value."""
        if name in self.changes:
            return self.changes[name]
        return getattr(self.data, name, default)

    def put_change(self, name: str, value: Any) -> "Changeset":
        self.changes[name] = value
        return self

    def delete_change(self, name: str) -> "Changeset":
        self.changes.pop(name, None)
        return self

    # ─── Validation ─────────────────────────────────────

    def add_error(self, name: str, message: str) -> "Changeset":
        messages = self.errors.setdefault(name, [])
        if message not in messages:
            messages.append(message)
        return self

    def validate_required(self, fields: Iterable[str]) -> "Changeset":
        """Every field must end up with a non-blank value."""
        for name in fields:
            value = self.get_field(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                self.add_error(name, "can't be blank")
        return self

    def validate_model(self, model: type[BaseModel]) -> "Changeset":
        """Run ``changes`` through a pydantic model, mapping failures to fields.

        Learn: The model declares every field optional so a partial update
        only validates what it touches. Coerced values replace the raw
        input so the record gets e.g. normalized e-mails.
        """
        try:
            validated = model.model_validate(self.changes)
        except ValidationError as e:
            for error in e.errors():
                loc = error.get("loc") or ("base",)
                self.add_error(str(loc[0]), _message(error))
            return self

        for name, value in validated.model_dump(exclude_unset=True).items():
            if name in self.changes:
                self.changes[name] = value
        return self

    # ─── Apply ──────────────────────────────────────────

    def apply_changes(self) -> Any:
        """Write ``changes`` onto ``data`` and return it."""
        for name, value in self.changes.items():
            setattr(self.data, name, value)
        return self.data


def cast(record: Any, params: Mapping[Any, Any] | None, permitted: Iterable[str]) -> Changeset:
    """Build a changeset from ``params``, keeping only ``permitted`` keys.

    A param only becomes a change when it differs from the current value
    on ``record``.
    """
    normalized = {str(key): value for key, value in (params or {}).items()}
    changeset = Changeset(data=record, params=normalized)

    for name in permitted:
        if name not in normalized:
            continue
        value = normalized[name]
        if isinstance(value, str) and not value.strip():
            value = None
        if value != getattr(record, name, None):
            changeset.changes[name] = value

    return changeset


def _message(error: dict) -> str:
    # Custom validators raise ValueError; show their text without pydantic's prefix.
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return error["msg"]
