from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId


def plain_ids(value: Any) -> Any:
    """중첩된 dict / list 안의 ObjectId 를 문자열로 (slides, pollOptions 의 _id)"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: plain_ids(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_ids(v) for v in value]
    return value


@dataclass
class Intent:
    id: ObjectId
    name: str
    description: Optional[str] = None


@dataclass
class Theme:
    id: ObjectId
    name: str
    description: Optional[str] = None
    intent_id: Optional[ObjectId] = None


@dataclass
class TimelineTask:
    set_id: ObjectId
    recommended_order: Optional[int] = None


@dataclass
class Subject:
    id: ObjectId
    name: str
    theme_id: ObjectId
    description: Optional[str] = None
    default_timeline: List[TimelineTask] = field(default_factory=list)


@dataclass
class ContentSet:
    """Capsule 묶음 (Mongo 컬렉션 이름은 sets)"""
    id: ObjectId
    name: str
    subject_id: ObjectId
    description: Optional[str] = None
    recommended_order: Optional[int] = None


@dataclass
class CapsuleMetadata:
    author: str = "Unknown"
    estimated_read_time: Optional[float] = None
    save_count: int = 0
    view_count: int = 0


@dataclass
class Capsule:
    id: ObjectId
    title: str
    set_id: ObjectId
    subject_id: ObjectId
    theme_id: ObjectId
    intent_tags: List[str] = field(default_factory=list)
    slides: List[Dict[str, Any]] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    metadata: CapsuleMetadata = field(default_factory=CapsuleMetadata)
    question_or_poll: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    def to_frontend_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "slides": plain_ids(self.slides),
            "intent": self.intent_tags,
            "theme": str(self.theme_id),
            "subject": str(self.subject_id),
            "set": str(self.set_id),
            "tags": self.tags,
            "metadata": {
                "author": self.metadata.author,
                "estimatedReadTime": self.metadata.estimated_read_time,
                "saveCount": self.metadata.save_count,
                "viewCount": self.metadata.view_count,
            },
            "questionOrPoll": plain_ids(self.question_or_poll),
            "createdAt": self.created_at,
        }


@dataclass
class Folder:
    id: ObjectId
    name: str
    creator_id: ObjectId
    privacy: str = "personal"  # "personal" | "public"
    participant_ids: List[ObjectId] = field(default_factory=list)
    capsule_ids: List[ObjectId] = field(default_factory=list)

    def to_frontend_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "privacy": self.privacy,
            "creator": str(self.creator_id),
            "participants": [str(p) for p in self.participant_ids],
            "capsules": [str(c) for c in self.capsule_ids],
        }


@dataclass
class UserPreference:
    user_id: ObjectId
    intent_ids: List[ObjectId] = field(default_factory=list)
    theme_ids: List[ObjectId] = field(default_factory=list)

    def to_frontend_dict(self) -> Dict[str, Any]:
        return {
            "userId": str(self.user_id),
            "intents": [str(i) for i in self.intent_ids],
            "themes": [str(t) for t in self.theme_ids],
        }


@dataclass
class SampledCapsule:
    capsule: Capsule
    is_saved: bool = False

    def to_frontend_dict(self) -> Dict[str, Any]:
        data = self.capsule.to_frontend_dict()
        data["isSaved"] = self.is_saved
        return data


@dataclass
class SampleResult:
    items: List[SampledCapsule]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        # ceil(total / page_size)
        return -(-self.total_count // self.page_size)

    def pagination_dict(self) -> Dict[str, int]:
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total_count,
        }
