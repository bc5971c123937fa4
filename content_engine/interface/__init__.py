from .api_interface import (
    get_capsules_by_preferences,
    get_next_capsule,
    get_saved_status,
    get_subject_timeline,
    get_suggested_capsules,
    get_user_folders,
    save_preferences,
)

__all__ = [
    "get_next_capsule",
    "get_capsules_by_preferences",
    "get_saved_status",
    "get_suggested_capsules",
    "get_user_folders",
    "save_preferences",
    "get_subject_timeline",
]
