"""
Visibility policy for datasets.

Every dataset carries a visibility record (owner, editors, viewers, public flag).
`decide` maps that record, a caller id and a canonical operation onto a verdict.
Nothing in here does I/O: the access gateway loads the record and calls in.

Routes name their operation explicitly. `operation_for_method` and `is_allowed`
are public helpers for callers that only hold a transport verb or want a
plain boolean, such as other services embedding this module.
"""
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, Field, model_validator


class Operation(str, Enum):
    """Canonical kinds of dataset operations."""

    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    CREATE_SUBRESOURCE = "create-subresource"


class Verdict(str, Enum):
    """Policy verdict."""

    ALLOW = "allow"
    DENY = "deny"


# Several transport verbs collapse onto the same operation kind.
METHOD_OPERATIONS: dict[str, Operation] = {
    "GET": Operation.READ,
    "PATCH": Operation.UPDATE,
    "DELETE": Operation.DELETE,
    "POST": Operation.CREATE_SUBRESOURCE,
    "PUT": Operation.CREATE_SUBRESOURCE,
}

OWNER_WRITABLE_FIELDS = frozenset({"title", "is_public", "editors", "viewers"})
EDITOR_WRITABLE_FIELDS = frozenset({"title"})


class Visibility(BaseModel):
    """Visibility record embedded in every dataset."""

    owner: str
    editors: list[str] = Field(default_factory=list)
    viewers: list[str] = Field(default_factory=list)
    is_public: bool = False

    @model_validator(mode="after")
    def _owner_is_editor(self) -> "Visibility":
        # owner always counts as an editor
        self.editors = sorted(set(self.editors) | {self.owner})
        self.viewers = sorted(set(self.viewers))
        return self

    def is_owner(self, caller_id: str) -> bool:
        """Returns True if the caller owns the dataset."""
        return caller_id == self.owner

    def is_editor(self, caller_id: str) -> bool:
        """Returns True if the caller may edit the dataset."""
        return caller_id in self.editors

    def is_viewer(self, caller_id: str) -> bool:
        """Returns True if the caller was granted read access."""
        return caller_id in self.viewers


def operation_for_method(method: str) -> Optional[Operation]:
    """Map a transport verb onto an operation kind, None if it has none."""
    return METHOD_OPERATIONS.get(method.upper())


def decide(
    visibility: Visibility,
    caller_id: str,
    operation: Union[Operation, str, None],
) -> Verdict:
    """
    Decide whether the caller may perform the operation.

    :param visibility: visibility record of the dataset.
    :param caller_id: verified identity of the caller.
    :param operation: canonical operation kind, anything else is denied.
    :return: policy verdict.
    """
    try:
        operation = Operation(operation)
    except ValueError:
        return Verdict.DENY

    match operation:
        case Operation.READ:
            allowed = (
                visibility.is_editor(caller_id)
                or visibility.is_viewer(caller_id)
                or visibility.is_public
            )
        case Operation.UPDATE:
            allowed = visibility.is_editor(caller_id) or visibility.is_owner(caller_id)
        case Operation.DELETE:
            allowed = visibility.is_owner(caller_id)
        case Operation.CREATE_SUBRESOURCE:
            allowed = visibility.is_owner(caller_id) or visibility.is_editor(caller_id)
        case _:
            allowed = False
    return Verdict.ALLOW if allowed else Verdict.DENY


def is_allowed(visibility: Visibility, caller_id: str, operation: Union[Operation, str, None]) -> bool:
    """Shortcut for `decide(...) is Verdict.ALLOW`."""
    return decide(visibility, caller_id, operation) is Verdict.ALLOW


def writable_fields(visibility: Visibility, caller_id: str) -> frozenset[str]:
    """Fields of a dataset the caller may change."""
    if visibility.is_owner(caller_id):
        return OWNER_WRITABLE_FIELDS
    if visibility.is_editor(caller_id):
        return EDITOR_WRITABLE_FIELDS
    return frozenset()


def check_patch_fields(visibility: Visibility, caller_id: str, fields: Iterable[str]) -> list[str]:
    """
    Return the fields of a patch the caller is not allowed to change.

    An empty list means the whole patch may be applied.
    """
    allowed = writable_fields(visibility, caller_id)
    return sorted(field for field in fields if field not in allowed)


def merge_visibility(visibility: Visibility, changes: dict[str, Any]) -> Visibility:
    """Apply visibility changes from a patch, keeping the owner fixed."""
    data = visibility.model_dump()
    for key in ("editors", "viewers", "is_public"):
        if key in changes and changes[key] is not None:
            data[key] = changes[key]
    return Visibility(**data)
