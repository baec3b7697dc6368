"""Permission administration."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.identity.access import authorize
from storefront.identity.user.user import User

logger = structlog.get_logger(__name__)


@storefront.command(part_of="User")
class UpdatePermissions:
    actor_id = Identifier(required=True)
    user_id = Identifier(required=True)
    permissions = Text(required=True)  # JSON array of permission names


@storefront.command_handler(part_of=User)
class UpdatePermissionsHandler:
    @handle(UpdatePermissions)
    def update_permissions(self, command):
        repo = current_domain.repository_for(User)
        actor = repo.get_or_not_found(command.actor_id)
        authorize("user.update_permissions", actor.to_identity())

        permissions = json.loads(command.permissions) if isinstance(command.permissions, str) else command.permissions
        if not isinstance(permissions, list):
            raise ValidationError({"permissions": ["Permissions must be a list"]})

        user = repo.get_or_not_found(command.user_id)
        user.update_permissions(permissions, updated_by=str(actor.id))
        repo.add(user)
        logger.info(
            "Permissions updated",
            user_id=str(user.id),
            actor_id=str(actor.id),
            permissions=user.permissions,
        )
        return str(user.id)


def list_users(identity) -> list[User]:
    authorize("user.list", identity)
    return current_domain.repository_for(User).list_all()
