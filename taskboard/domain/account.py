"""Preferencias de la cuenta: valores admitidos y defaults."""
from typing import Literal

Theme = Literal["light", "dark", "system"]
DefaultView = Literal["tasks", "calendar", "notes"]
TaskSortPreference = Literal["dueDate", "priority", "createdAt", "alphabetical"]

THEMES = ["light", "dark", "system"]
DEFAULT_VIEWS = ["tasks", "calendar", "notes"]
TASK_SORT_PREFERENCES = ["dueDate", "priority", "createdAt", "alphabetical"]

# Claves tal como se guardan en el documento `user.preferences`
DEFAULT_PREFERENCES = {
    "theme": "system",
    "default_view": "tasks",
    "task_sort_by": "createdAt",
}
