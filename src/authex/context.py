"""Users context: the five user-lifecycle operations and their defaults.

Learn: The context sits between whoever authenticates a request and the
user store. It never hard-codes either side. Every operation takes a
``Config`` and looks up its collaborators at call time:

- ``repo``: the persistence layer (insert/update/delete/get_by)
- ``user``: the user-schema type (login field, changesets, passwords)

Host apps that need custom behaviour subclass ``UsersContext`` and
override only the operations they care about::

    class Users(UsersContext, repo=Repo.from_settings(), user=User):
        def create(self, params):
            params = {**params, "name": params.get("name") or "anonymous"}
            return self.authex_create(params)

Every public method forwards to an ``authex_*`` method, which calls the
module-level default with the bound config. Overriding ``create`` leaves
``authenticate``, ``update``, ``delete`` and ``get_by`` untouched.

Errors:
- missing ``repo``/``user`` raises ``ConfigError`` before any DB access
- validation and constraint failures come back as ``Err(changeset)``
- authenticate/get_by return None on no match; authenticate also returns
  None on a bad password, so callers can't tell the two apart
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional, Protocol, runtime_checkable

import structlog

from authex import config as authex_config
from authex.config import Config
from authex.result import Result
from authex.schema import login_field, verify_password

logger = structlog.get_logger()

Clauses = Mapping[str, Any] | Iterable[tuple[str, Any]]


@runtime_checkable
class UserContext(Protocol):
    """What a users context must provide."""

    def authenticate(self, params: Mapping[str, Any]) -> Optional[Any]: ...

    def create(self, params: Mapping[str, Any]) -> Result: ...

    def update(self, user: Any, params: Mapping[str, Any]) -> Result: ...

    def delete(self, user: Any) -> Result: ...

    def get_by(self, clauses: Clauses) -> Optional[Any]: ...


# ─── Collaborator resolution ────────────────────────────


def repo(config: Mapping[str, Any]) -> Any:
    """The configured persistence layer. Raises ConfigError if missing."""
    return authex_config.require(
        config,
        "repo",
        "No :repo configuration option found for users context module.",
    )


def user_schema(config: Mapping[str, Any]) -> type:
    """The configured user-schema type. Raises ConfigError if missing."""
    return authex_config.require(
        config,
        "user",
        "No :user configuration option found for user schema module.",
    )


# ─── Default operations ─────────────────────────────────


def authenticate(config: Mapping[str, Any], params: Mapping[str, Any]) -> Optional[Any]:
    """Return the user matching the login field and password, else None.

    Learn: "No such login" and "wrong password" both return None. Only a
    verification result that ``is True`` counts; False, None, any other
    truthy value, or an exception from the hasher all fail the same way.
    """
    schema = user_schema(config)
    field = login_field(schema)

    login_value = params.get(str(field))
    password = params.get("password")

    user = get_by(config, {field: login_value})
    if user is None:
        logger.info("users.authenticate.no_user", schema=schema.__name__)
        return None

    if _verify_password(user, password) is True:
        logger.info("users.authenticate.ok", user_id=_user_id(user))
        return user

    logger.info("users.authenticate.failed", user_id=_user_id(user))
    return None


def create(config: Mapping[str, Any], params: Mapping[str, Any]) -> Result:
    """Build a changeset for a new user and insert it."""
    schema = user_schema(config)
    target = repo(config)

    changeset = schema.changeset(schema(), params)
    result = target.insert(changeset)
    if not result.ok:
        logger.info("users.create.invalid", fields=sorted(result.error.errors))
    return result


def update(config: Mapping[str, Any], user: Any, params: Mapping[str, Any]) -> Result:
    """Apply ``params`` to an already-loaded user and persist them."""
    user_schema(config)
    target = repo(config)

    changeset = type(user).changeset(user, params)
    result = target.update(changeset)
    if not result.ok:
        logger.info(
            "users.update.invalid",
            user_id=_user_id(user),
            fields=sorted(result.error.errors),
        )
    return result


def delete(config: Mapping[str, Any], user: Any) -> Result:
    user_schema(config)
    return repo(config).delete(user)


def get_by(config: Mapping[str, Any], clauses: Clauses) -> Optional[Any]:
    """Look a user up by field/value equality clauses. None if no match."""
    schema = user_schema(config)
    return repo(config).get_by(schema, clauses)


def _verify_password(user: Any, password: Any) -> Any:
    try:
        return verify_password(user, password)
    except Exception as e:
        logger.warning(
            "users.authenticate.verify_error",
            user_id=_user_id(user),
            error=type(e).__name__,
        )
        return False


def _user_id(user: Any) -> Optional[str]:
    user_id = getattr(user, "id", None)
    return str(user_id) if user_id is not None else None


# ─── Overridable context ────────────────────────────────


class UsersContext:
    """Default users context, bound to a Config.

    Learn: Config comes from class keywords (``repo=``, ``user=``, ...)
    and/or the constructor. Constructor options win. Subclasses inherit
    their parent's class-level options.
    """

    config: Config = Config()

    def __init_subclass__(cls, **options: Any):
        super().__init_subclass__()
        cls.config = cls.config.merge(**options)

    def __init__(self, config: Mapping[str, Any] | None = None, **options: Any):
        self.config = type(self).config.merge(**{**dict(config or {}), **options})

    # ─── Public operations (override freely) ────────────

    def authenticate(self, params: Mapping[str, Any]) -> Optional[Any]:
        return self.authex_authenticate(params)

    def create(self, params: Mapping[str, Any]) -> Result:
        return self.authex_create(params)

    def update(self, user: Any, params: Mapping[str, Any]) -> Result:
        return self.authex_update(user, params)

    def delete(self, user: Any) -> Result:
        return self.authex_delete(user)

    def get_by(self, clauses: Clauses) -> Optional[Any]:
        return self.authex_get_by(clauses)

    # ─── Defaults ───────────────────────────────────────

    def authex_authenticate(self, params: Mapping[str, Any]) -> Optional[Any]:
        return authenticate(self.config, params)

    def authex_create(self, params: Mapping[str, Any]) -> Result:
        return create(self.config, params)

    def authex_update(self, user: Any, params: Mapping[str, Any]) -> Result:
        return update(self.config, user, params)

    def authex_delete(self, user: Any) -> Result:
        return delete(self.config, user)

    def authex_get_by(self, clauses: Clauses) -> Optional[Any]:
        return get_by(self.config, clauses)


def users_context(config: Mapping[str, Any]) -> UserContext:
    """The context to use for ``config``.

    Honours a ``users_context`` option naming a custom context class;
    falls back to ``UsersContext``. Either way it's bound to ``config``.
    """
    context_cls = authex_config.get(config, "users_context", UsersContext)
    return context_cls(config)
