"""Directory port — read-only lookups into entities this context does not own.

User profiles, task assignees and the human-readable names of tasks, forms,
form entries, site diaries, projects, statuses and priorities all live in
other parts of the application. Triggers and the dispatcher read them only
through this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None

    @property
    def display_name(self) -> str | None:
        """First + last name, else full name, else the email's local part."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@", 1)[0]
        return None


class DirectoryPort(ABC):
    """Abstract lookup interface. Every method returns None when nothing matches."""

    @abstractmethod
    def user_profile(self, user_id: str) -> UserProfile | None: ...

    @abstractmethod
    def task_title(self, task_id: str) -> str | None: ...

    @abstractmethod
    def task_assignees(self, task_id: str) -> list[str]:
        """Assignee user ids of the task (empty when unknown)."""
        ...

    @abstractmethod
    def task_project_id(self, task_id: str) -> str | None: ...

    @abstractmethod
    def form_name(self, form_id: str) -> str | None: ...

    @abstractmethod
    def form_entry_name(self, entry_id: str) -> str | None: ...

    @abstractmethod
    def site_diary_name(self, diary_id: str) -> str | None: ...

    @abstractmethod
    def project_name(self, project_id: str) -> str | None: ...

    @abstractmethod
    def status_name(self, status_id: str) -> str | None: ...

    @abstractmethod
    def priority_name(self, priority_id: str) -> str | None: ...

    def display_name(self, user_id: str | None) -> str | None:
        if not user_id:
            return None
        profile = self.user_profile(user_id)
        return profile.display_name if profile else None
