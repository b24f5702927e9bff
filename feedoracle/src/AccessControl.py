"""AccessControl: Permission checks for registry-mutating operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import Enum


class Action(Enum):
    """Privileged operations guarded by an access-control check."""

    REGISTER_KEY = "register_key"
    REMOVE_KEY = "remove_key"
    SET_SOURCE = "set_source"
    ADD_SUBMITTER = "add_submitter"
    REMOVE_SUBMITTER = "remove_submitter"


class AccessControl(ABC):
    """Abstract base class for access-control collaborators."""

    @abstractmethod
    def is_authorized(self, caller: str, action: Action) -> bool:
        """Check whether ``caller`` may perform ``action``.

        :param caller: Identity of the calling account.
        :param action: Operation being attempted.
        :returns: True if allowed.
        """
        pass


class StaticAccessControl(AccessControl):
    """Allow-list of admin accounts permitted to perform every action.

    :ivar admins: Accounts with full privileges.
    """

    def __init__(self, admins: Iterable[str]) -> None:
        self.admins = frozenset(admins)

    def is_authorized(self, caller: str, action: Action) -> bool:
        return caller in self.admins
