from .data_models import (
    Capsule,
    CapsuleMetadata,
    ContentSet,
    Folder,
    Intent,
    SampledCapsule,
    SampleResult,
    Subject,
    Theme,
    TimelineTask,
    UserPreference,
)

__all__ = [
    "Capsule",
    "CapsuleMetadata",
    "ContentSet",
    "Folder",
    "Intent",
    "SampledCapsule",
    "SampleResult",
    "Subject",
    "Theme",
    "TimelineTask",
    "UserPreference",
]
