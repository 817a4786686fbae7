"""Human-readable titles for the entities an approval can refer to."""

from notifications.directory import get_directory

UNKNOWN_ENTITY = "Unknown Entity"
GENERAL_APPROVAL = "General Approval"
UNKNOWN_ITEM = "Unknown Item"

# Entity type tag -> DirectoryPort lookup method
_TITLE_LOOKUPS = {
    "tasks": "task_title",
    "task": "task_title",
    "form": "form_name",
    "entries": "form_entry_name",
    "form_entry": "form_entry_name",
    "site_diary": "site_diary_name",
}


def entity_title(entity_type: str | None, entity_id: str | None) -> str | None:
    """Title of the referenced entity.

    Approvals without an entity are "General Approval"; an entity type outside
    the known set is "Unknown Entity". A known type whose row cannot be found
    yields None, which callers render as "Unknown Item".
    """
    if not entity_type or not entity_id:
        return GENERAL_APPROVAL

    lookup = _TITLE_LOOKUPS.get(entity_type)
    if lookup is None:
        return UNKNOWN_ENTITY
    return getattr(get_directory(), lookup)(str(entity_id))
