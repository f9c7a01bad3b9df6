"""
Request and response payloads for the HackMD API.

The API speaks camelCase JSON; these dataclasses expose snake_case
attributes and convert with ``from_dict`` / ``to_dict``.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

E = TypeVar("E", bound=enum.Enum)

Timestamp = Union[int, str]


class NotePermissionRole(str, enum.Enum):
    OWNER = "owner"
    SIGNED_IN = "signed_in"
    GUEST = "guest"


class CommentPermissionType(str, enum.Enum):
    DISABLED = "disabled"
    FORBIDDEN = "forbidden"
    OWNERS = "owners"
    SIGNED_IN_USERS = "signed_in_users"
    EVERYONE = "everyone"


class NotePublishType(str, enum.Enum):
    EDIT = "edit"
    VIEW = "view"
    SLIDE = "slide"
    BOOK = "book"


class TeamVisibilityType(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


def _enum(enum_class: Type[E], value: Optional[str]) -> Optional[E]:
    if value is None:
        return None
    return enum_class(value)


def _drop_unset(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.value if isinstance(value, enum.Enum) else value
        for key, value in payload.items()
        if value is not None
    }


@dataclass
class Team:
    id: str
    owner_id: str
    name: str
    path: str
    logo: Optional[str] = None
    description: Optional[str] = None
    hard_breaks: bool = False
    visibility: Optional[TeamVisibilityType] = None
    created_at: Optional[Timestamp] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Team":
        return cls(
            id=data["id"],
            owner_id=data["ownerId"],
            name=data["name"],
            path=data["path"],
            logo=data.get("logo"),
            description=data.get("description"),
            hard_breaks=bool(data.get("hardBreaks", False)),
            visibility=_enum(TeamVisibilityType, data.get("visibility")),
            created_at=data.get("createdAt"),
        )


@dataclass
class User:
    id: str
    name: str
    user_path: str
    email: Optional[str] = None
    photo: Optional[str] = None
    teams: List[Team] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            name=data["name"],
            user_path=data["userPath"],
            email=data.get("email"),
            photo=data.get("photo"),
            teams=[Team.from_dict(team) for team in data.get("teams") or []],
        )


@dataclass
class SimpleUserProfile:
    name: str
    user_path: str
    photo: Optional[str] = None
    biography: Optional[str] = None
    created_at: Optional[Timestamp] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimpleUserProfile":
        return cls(
            name=data["name"],
            user_path=data["userPath"],
            photo=data.get("photo"),
            biography=data.get("biography"),
            created_at=data.get("createdAt"),
        )


@dataclass
class Note:
    """Note metadata as returned by list endpoints."""

    id: str
    title: str
    short_id: str
    publish_link: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    last_changed_at: Optional[Timestamp] = None
    created_at: Optional[Timestamp] = None
    last_change_user: Optional[SimpleUserProfile] = None
    publish_type: Optional[NotePublishType] = None
    published_at: Optional[Timestamp] = None
    user_path: Optional[str] = None
    team_path: Optional[str] = None
    permalink: Optional[str] = None
    read_permission: Optional[NotePermissionRole] = None
    write_permission: Optional[NotePermissionRole] = None

    @staticmethod
    def _fields(data: Dict[str, Any]) -> Dict[str, Any]:
        last_change_user = data.get("lastChangeUser")
        return {
            "id": data["id"],
            "title": data["title"],
            "short_id": data["shortId"],
            "publish_link": data.get("publishLink"),
            "tags": list(data.get("tags") or []),
            "last_changed_at": data.get("lastChangedAt"),
            "created_at": data.get("createdAt"),
            "last_change_user": (
                SimpleUserProfile.from_dict(last_change_user)
                if last_change_user
                else None
            ),
            "publish_type": _enum(NotePublishType, data.get("publishType")),
            "published_at": data.get("publishedAt"),
            "user_path": data.get("userPath"),
            "team_path": data.get("teamPath"),
            "permalink": data.get("permalink"),
            "read_permission": _enum(NotePermissionRole, data.get("readPermission")),
            "write_permission": _enum(NotePermissionRole, data.get("writePermission")),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        return cls(**cls._fields(data))


@dataclass
class SingleNote(Note):
    """A note together with its content."""

    content: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SingleNote":
        return cls(content=data.get("content") or "", **cls._fields(data))


@dataclass
class CreateNoteOptions:
    title: Optional[str] = None
    content: Optional[str] = None
    read_permission: Optional[NotePermissionRole] = None
    write_permission: Optional[NotePermissionRole] = None
    comment_permission: Optional[CommentPermissionType] = None
    permalink: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_unset(
            {
                "title": self.title,
                "content": self.content,
                "readPermission": self.read_permission,
                "writePermission": self.write_permission,
                "commentPermission": self.comment_permission,
                "permalink": self.permalink,
            }
        )


@dataclass
class UpdateNoteOptions:
    content: Optional[str] = None
    read_permission: Optional[NotePermissionRole] = None
    write_permission: Optional[NotePermissionRole] = None
    permalink: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_unset(
            {
                "content": self.content,
                "readPermission": self.read_permission,
                "writePermission": self.write_permission,
                "permalink": self.permalink,
            }
        )


def note_list(data: Any) -> List[Note]:
    """Decode a JSON array of notes."""
    if not isinstance(data, list):
        raise TypeError(f"expected a list of notes, got {type(data).__name__}")
    return [Note.from_dict(item) for item in data]


def team_list(data: Any) -> List[Team]:
    """Decode a JSON array of teams."""
    if not isinstance(data, list):
        raise TypeError(f"expected a list of teams, got {type(data).__name__}")
    return [Team.from_dict(item) for item in data]


def optional_single_note(data: Any) -> Optional[SingleNote]:
    """Decode a note from an update response, which may have no body."""
    if data is None:
        return None
    return SingleNote.from_dict(data)
