from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple

from bson import ObjectId

from ..data.mock_data import build_mock_corpus
from ..data.mongo_store import MongoContentStore
from ..data.store import ContentStore
from ..models.data_models import Capsule, ContentSet, Folder, SampleResult, UserPreference
from ..navigation.next_resolver import NextCapsuleResolver
from ..navigation.preferences import merge_preferences, ordered_timeline
from ..navigation.sampler import DEFAULT_PAGE_SIZE, PreferenceSampler
from ..navigation.save_state import SaveStateJoiner

logger = logging.getLogger(__name__)

CONTENT_STORE = os.getenv("CONTENT_STORE", "mongo").lower()
SUGGESTED_LIMIT = 10

_store: Optional[ContentStore] = None
_resolver: Optional[NextCapsuleResolver] = None
_sampler: Optional[PreferenceSampler] = None
_joiner: Optional[SaveStateJoiner] = None


def _build_store() -> ContentStore:
    if CONTENT_STORE == "memory":
        logger.info("[Pipeline] Using in-memory mock corpus")
        return build_mock_corpus()
    return MongoContentStore()


def get_store() -> ContentStore:
    global _store
    if _store is None:
        _store = _build_store()
    return _store


def set_store(store: Optional[ContentStore]) -> None:
    """저장소 교체 (테스트용). 의존 싱글톤도 함께 초기화."""
    global _store, _resolver, _sampler, _joiner
    _store = store
    _resolver = None
    _sampler = None
    _joiner = None


def _get_joiner() -> SaveStateJoiner:
    global _joiner
    if _joiner is None:
        _joiner = SaveStateJoiner(get_store())
    return _joiner


def _get_resolver() -> NextCapsuleResolver:
    global _resolver
    if _resolver is None:
        _resolver = NextCapsuleResolver(get_store())
    return _resolver


def _get_sampler() -> PreferenceSampler:
    global _sampler
    if _sampler is None:
        _sampler = PreferenceSampler(get_store(), joiner=_get_joiner())
    return _sampler


def next_capsule(capsule_id: ObjectId) -> Capsule:
    return _get_resolver().resolve_next(capsule_id)


def sample_capsules(
    user_id: Optional[ObjectId],
    intent_ids: List[ObjectId],
    theme_ids: List[ObjectId],
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> SampleResult:
    return _get_sampler().sample(user_id, intent_ids, theme_ids, page=page, page_size=page_size)


def is_capsule_saved(user_id: ObjectId, capsule_id: ObjectId) -> bool:
    return _get_joiner().is_saved(user_id, capsule_id)


def suggested_capsules(user_id: ObjectId, limit: int = SUGGESTED_LIMIT) -> List[Capsule]:
    """user 가 아직 저장하지 않은 캡슐 중 saveCount 상위 limit 개"""
    store = get_store()
    saved = store.saved_capsule_ids(user_id)
    suggestions = store.top_saved_capsules(limit=limit, exclude_ids=saved)
    logger.info(f"[Pipeline] suggestions for user={user_id}: saved={len(saved)} returned={len(suggestions)}")
    return suggestions


def user_folders(user_id: ObjectId) -> List[Folder]:
    return get_store().folders_for_user(user_id)


def save_user_preferences(
    user_id: ObjectId, intent_ids: List[ObjectId], theme_ids: List[ObjectId]
) -> Tuple[UserPreference, bool]:
    return merge_preferences(get_store(), user_id, intent_ids, theme_ids)


def subject_timeline(subject_id: ObjectId) -> List[ContentSet]:
    return ordered_timeline(get_store(), subject_id)
