"""Entity kinds exposed through the generic list executor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from taskboard.core.errors import NotFoundError
from taskboard.models.invitation import Invitation
from taskboard.models.task import Task
from taskboard.models.team import Team
from taskboard.models.team_member import TeamMember
from taskboard.models.user import User


class EntityKind(str, Enum):
    TEAM = "team"
    TEAM_MEMBER = "team_member"
    TASK = "task"
    INVITATION = "invitation"
    USER = "user"


@dataclass(frozen=True)
class EntityDescriptor:
    kind: EntityKind
    model: type
    searchable_fields: tuple = ()
    default_sort: str | None = None


USER_PUBLIC_FIELDS = ("id", "email", "username", "firstName", "lastName", "profileImage")

ENTITY_REGISTRY: dict[EntityKind, EntityDescriptor] = {
    EntityKind.TEAM: EntityDescriptor(
        kind=EntityKind.TEAM,
        model=Team,
        searchable_fields=("name", "slug", "description"),
        default_sort="createdAt:desc",
    ),
    EntityKind.TEAM_MEMBER: EntityDescriptor(
        kind=EntityKind.TEAM_MEMBER,
        model=TeamMember,
        searchable_fields=("user.email", "user.username", "user.firstName", "user.lastName"),
        default_sort="joinedAt:desc",
    ),
    EntityKind.TASK: EntityDescriptor(
        kind=EntityKind.TASK,
        model=Task,
        searchable_fields=("title", "description"),
        default_sort="createdAt:desc",
    ),
    EntityKind.INVITATION: EntityDescriptor(
        kind=EntityKind.INVITATION,
        model=Invitation,
        searchable_fields=("email", "team.name"),
        default_sort="invitedAt:desc",
    ),
    EntityKind.USER: EntityDescriptor(
        kind=EntityKind.USER,
        model=User,
        searchable_fields=("email", "username", "firstName", "lastName"),
        default_sort="createdAt:desc",
    ),
}

# Columns that never leave the API, wherever the row is serialised from.
GLOBAL_HIDDEN_FIELDS = frozenset({"password_hash", "token_hash"})


def get_entity(kind: EntityKind | str) -> EntityDescriptor:
    try:
        return ENTITY_REGISTRY[EntityKind(kind)]
    except (KeyError, ValueError):
        raise NotFoundError(f"Unknown entity kind: {kind}")
