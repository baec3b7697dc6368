"""Lookups on User beyond get-by-id."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.exceptions import NotFoundError
from storefront.identity.user.user import User


@storefront.repository(part_of=User)
class UserRepository:
    def find_by_email(self, email: str) -> User | None:
        users = self._dao.query.filter(email=(email or "").strip().lower()).all().items
        return users[0] if users else None

    def find_by_reset_token(self, token: str) -> User | None:
        if not token:
            return None
        users = self._dao.query.filter(reset_token=token).all().items
        return users[0] if users else None

    def list_all(self) -> list[User]:
        users = self._dao.query.all().items
        return sorted(users, key=lambda user: (user.created_at is None, user.created_at, user.email))

    def get_or_not_found(self, user_id) -> User:
        try:
            return self.get(user_id)
        except ObjectNotFoundError:
            raise NotFoundError(f"No user found for id {user_id}") from None
