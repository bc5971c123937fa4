from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Tuple

from bson import ObjectId

from ..data.store import ContentStore, HierarchyLevel
from ..errors import NotFoundError
from ..models.data_models import ContentSet, UserPreference
from .ordinal import sort_siblings

logger = logging.getLogger(__name__)


def merge_unique(existing: Iterable[ObjectId], incoming: Iterable[ObjectId]) -> List[ObjectId]:
    """기존 순서를 유지하며 합치고 중복 제거"""
    merged: List[ObjectId] = []
    seen = set()
    for oid in list(existing) + list(incoming):
        if oid not in seen:
            seen.add(oid)
            merged.append(oid)
    return merged


def merge_preferences(
    store: ContentStore,
    user_id: ObjectId,
    intent_ids: Iterable[ObjectId],
    theme_ids: Iterable[ObjectId],
) -> Tuple[UserPreference, bool]:
    """
    새 intent / theme 선호도를 기존 선호도에 합친다.
    return: (저장된 선호도, 새로 만들었는지 여부)
    """
    existing = store.get_preference(user_id)
    created = existing is None
    if existing is None:
        existing = UserPreference(user_id=user_id)

    preference = UserPreference(
        user_id=user_id,
        intent_ids=merge_unique(existing.intent_ids, intent_ids),
        theme_ids=merge_unique(existing.theme_ids, theme_ids),
    )
    store.save_preference(preference)
    logger.info(
        f"[Preferences] user={user_id} {'created' if created else 'merged'}: "
        f"intents={len(preference.intent_ids)} themes={len(preference.theme_ids)}"
    )
    return preference, created


def ordered_timeline(store: ContentStore, subject_id: ObjectId) -> List[ContentSet]:
    """Subject 의 Set 들을 recommendedOrder → id 순으로 정렬 (타임라인 화면용)"""
    subject = store.get(HierarchyLevel.SUBJECT, subject_id)
    if subject is None:
        raise NotFoundError(f"Subject not found: {subject_id}")

    sets = store.children(HierarchyLevel.SET, subject_id)

    # defaultTimeline 에 지정된 순서가 있으면 Set 자체 값보다 우선
    timeline_order = {t.set_id: t.recommended_order for t in subject.default_timeline if t.recommended_order is not None}
    sets = [
        replace(s, recommended_order=timeline_order[s.id]) if s.id in timeline_order else s
        for s in sets
    ]
    return sort_siblings(sets)
