"""User schema collaborator: login field, changesets, password checks.

Learn: The users context never touches model internals. It asks the
user-schema type three things:

1. ``login_field(schema)``: which field identifies a user at login
2. ``schema.changeset(record, params)``: validate input against a record
3. ``user.verify_password(plaintext)``: does this password match

``UserSchema`` is a mixin providing all three for any model with a
``password_hash`` column. Override ``login_field`` (and ``params_model``
if the field needs different validation) to log in by username instead
of e-mail.
"""

import re
import weakref
from collections.abc import Mapping
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from authex.auth import password as passwords
from authex.changeset import Changeset, cast
from authex.config import settings

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserParams(BaseModel):
    """Shape of user input for the default e-mail login schema.

    Every field is optional so partial updates only validate what they
    change. Required-ness is checked on the changeset.
    """

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = Field(default=None, max_length=255)
    name: Optional[str] = Field(default=None, max_length=100)
    password: Optional[str] = None
    current_password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("has invalid format")
        return v.lower() if v is not None else v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) < settings.password_min_length:
            raise ValueError(
                f"should be at least {settings.password_min_length} character(s)"
            )
        return v


_login_fields: "weakref.WeakKeyDictionary[type, str]" = weakref.WeakKeyDictionary()


def login_field(schema_type: type) -> str:
    """Return the login field declared by ``schema_type``.

    Resolved once per type and memoized; later changes to the class
    attribute are not picked up. The memo holds types weakly.
    """
    cached = _login_fields.get(schema_type)
    if cached is not None:
        return cached

    field = getattr(schema_type, "login_field", None)
    if not isinstance(field, str) or not field:
        raise TypeError(
            f"{schema_type.__name__} must declare a non-empty `login_field`"
        )
    _login_fields[schema_type] = field
    return field


def verify_password(user: Any, plaintext: Any) -> bool:
    return user.verify_password(plaintext)


class UserSchema:
    """Mixin for user models.

    Expects the model to have the login field column, an optional
    ``name`` and a nullable ``password_hash``.
    """

    login_field: ClassVar[str] = "email"
    params_model: ClassVar[type[BaseModel]] = UserParams
    permitted: ClassVar[tuple[str, ...]] = ("name",)

    @classmethod
    def changeset(cls, record: Any, params: Mapping[Any, Any] | None) -> Changeset:
        """Cast and validate ``params`` against ``record``.

        Learn: A plaintext ``password`` never reaches the database. On a
        valid changeset it is replaced by ``password_hash``; on an invalid
        one it is dropped so the changeset handed back to the caller
        carries no secrets. Changing an existing password requires
        ``current_password``.
        """
        field = login_field(cls)
        changeset = cast(
            record,
            params,
            (field, *cls.permitted, "password", "current_password"),
        )
        changeset.validate_model(cls.params_model)
        changeset.validate_required([field])

        existing_hash = getattr(record, "password_hash", None)
        if not existing_hash:
            changeset.validate_required(["password"])
        elif changeset.get_change("password") is not None:
            _validate_current_password(changeset, existing_hash)

        new_password = changeset.get_change("password")
        changeset.delete_change("password").delete_change("current_password")
        if changeset.valid and new_password is not None:
            changeset.put_change("password_hash", passwords.hash_password(new_password))

        return changeset

    def verify_password(self, plaintext: Any) -> bool:
        password_hash = getattr(self, "password_hash", None)
        if not password_hash:
            return False
        return passwords.verify_password(plaintext, password_hash)


def _validate_current_password(changeset: Changeset, existing_hash: str) -> None:
    current = changeset.get_change("current_password")
    if current is None:
        changeset.add_error("current_password", "can't be blank")
    elif not passwords.verify_password(current, existing_hash):
        changeset.add_error("current_password", "is invalid")
