"""Manager modules for the pharmacy checklist engine.

Managers orchestrate workflows and coordinate between engines.
"""

from .checklist_manager import ChecklistEntry, ChecklistManager

__all__ = [
    "ChecklistEntry",
    "ChecklistManager",
]
