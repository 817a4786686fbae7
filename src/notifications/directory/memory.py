"""In-memory directory adapter used in development and tests."""

from notifications.directory.port import DirectoryPort, UserProfile


class InMemoryDirectory(DirectoryPort):
    """Directory backed by plain dicts, populated through the `add_*` methods."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.users: dict[str, UserProfile] = {}
        self.tasks: dict[str, dict] = {}
        self.forms: dict[str, str] = {}
        self.form_entries: dict[str, str] = {}
        self.site_diaries: dict[str, str] = {}
        self.projects: dict[str, str] = {}
        self.statuses: dict[str, str] = {}
        self.priorities: dict[str, str] = {}

    # -------------------------------------------------------------------
    # Population
    # -------------------------------------------------------------------
    def add_user(self, user_id, email=None, first_name=None, last_name=None, full_name=None) -> UserProfile:
        profile = UserProfile(
            user_id=str(user_id),
            email=email,
            first_name=first_name,
            last_name=last_name,
            full_name=full_name,
        )
        self.users[str(user_id)] = profile
        return profile

    def add_task(self, task_id, title, assignee_ids=(), project_id=None):
        self.tasks[str(task_id)] = {
            "title": title,
            "assignees": [str(a) for a in assignee_ids],
            "project_id": str(project_id) if project_id else None,
        }

    def add_form(self, form_id, name):
        self.forms[str(form_id)] = name

    def add_form_entry(self, entry_id, name):
        self.form_entries[str(entry_id)] = name

    def add_site_diary(self, diary_id, name):
        self.site_diaries[str(diary_id)] = name

    def add_project(self, project_id, name):
        self.projects[str(project_id)] = name

    def add_status(self, status_id, name):
        self.statuses[str(status_id)] = name

    def add_priority(self, priority_id, name):
        self.priorities[str(priority_id)] = name

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def user_profile(self, user_id):
        return self.users.get(str(user_id))

    def task_title(self, task_id):
        task = self.tasks.get(str(task_id))
        return task["title"] if task else None

    def task_assignees(self, task_id):
        task = self.tasks.get(str(task_id))
        return list(task["assignees"]) if task else []

    def task_project_id(self, task_id):
        task = self.tasks.get(str(task_id))
        return task["project_id"] if task else None

    def form_name(self, form_id):
        return self.forms.get(str(form_id))

    def form_entry_name(self, entry_id):
        return self.form_entries.get(str(entry_id))

    def site_diary_name(self, diary_id):
        return self.site_diaries.get(str(diary_id))

    def project_name(self, project_id):
        return self.projects.get(str(project_id))

    def status_name(self, status_id):
        return self.statuses.get(str(status_id))

    def priority_name(self, priority_id):
        return self.priorities.get(str(priority_id))
