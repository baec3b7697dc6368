"""Identity context: who is making this request.

Built from the session cookie once per request. The user record and its
permissions are loaded at most once and then reused, so every check made
while serving one request sees the same permission set.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.exceptions import AuthError
from storefront.identity.access import Identity
from storefront.identity.tokens import read_token
from storefront.identity.user.user import User

_UNRESOLVED = object()


class IdentityContext:
    def __init__(self, token: str | None = None) -> None:
        self.token = token or None
        self._user_id = _UNRESOLVED
        self._identity = _UNRESOLVED

    @classmethod
    def anonymous(cls) -> "IdentityContext":
        return cls(None)

    @classmethod
    def for_identity(cls, identity: Identity) -> "IdentityContext":
        """A context that is already resolved to ``identity``."""
        context = cls(None)
        context._user_id = identity.user_id
        context._identity = identity
        return context

    @property
    def is_anonymous(self) -> bool:
        return self.current_user_id() is None

    def current_user_id(self) -> str | None:
        """The user id carried by the credential, or None if there is no valid one."""
        if self._user_id is _UNRESOLVED:
            if self.token is None:
                self._user_id = None
            else:
                try:
                    self._user_id = read_token(self.token)
                except AuthError:
                    self._user_id = None
        return self._user_id

    def current_user(self) -> Identity | None:
        """Resolve the caller.

        Returns None when no credential was presented. Raises ``AuthError``
        when one was presented but is invalid, expired or names an unknown user.
        """
        if self._identity is not _UNRESOLVED:
            return self._identity

        if self.token is None:
            self._identity = None
            return None

        user_id = read_token(self.token)
        try:
            user = current_domain.repository_for(User).get(user_id)
        except ObjectNotFoundError:
            raise AuthError("Your session is invalid or has expired. Please sign in again") from None

        self._user_id = user_id
        self._identity = user.to_identity()
        return self._identity

    def require_user(self) -> Identity:
        identity = self.current_user()
        if identity is None:
            raise AuthError()
        return identity
