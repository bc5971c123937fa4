from __future__ import annotations

import logging
from typing import Optional

from bson import ObjectId

from ..data.store import ContentStore, HierarchyLevel
from ..errors import NoRecommendationError, NotFoundError
from ..models.data_models import Capsule

logger = logging.getLogger(__name__)

_CHILD_LEVEL = {
    HierarchyLevel.THEME: HierarchyLevel.SUBJECT,
    HierarchyLevel.SUBJECT: HierarchyLevel.SET,
    HierarchyLevel.SET: HierarchyLevel.CAPSULE,
}


class NextCapsuleResolver:
    """
    "capsule X 다음에 볼 캡슐" 결정.

    Cascade (먼저 찾는 단계에서 바로 반환):
      1) 같은 Set 안에서 id 가 바로 다음인 캡슐
      2) 같은 Subject 안의 다음 Set → 첫 캡슐
      3) 같은 Theme 안의 다음 Subject → 첫 Set → 첫 캡슐
      4) 같은 Intent 안의 다음 Theme → 첫 Subject → 첫 Set → 첫 캡슐
      5) 전체에서 saveCount 최댓값 캡슐 (동점이면 id 가 작은 것)

    각 단계는 "바로 다음" 형제 하나만 본다. 그 형제 아래가 비어 있으면
    더 뒤의 형제를 찾지 않고 다음 단계로 넘어간다.
    순서는 recommendedOrder 가 아니라 id(생성 순서) 기준.
    """

    def __init__(self, store: ContentStore):
        self.store = store

    def _descend_to_capsule(self, level: HierarchyLevel, entity_id: ObjectId) -> Optional[Capsule]:
        # 각 단계의 첫 자식(가장 작은 id)을 따라 캡슐까지 내려간다
        child = None
        while level is not HierarchyLevel.CAPSULE:
            level = _CHILD_LEVEL[level]
            child = self.store.first_child(level, entity_id)
            if child is None:
                return None
            entity_id = child.id
        return child

    def _next_in_parent(
        self,
        level: HierarchyLevel,
        parent_id: Optional[ObjectId],
        current_id: Optional[ObjectId],
    ) -> Optional[Capsule]:
        if parent_id is None or current_id is None:
            return None
        sibling = self.store.first_child(level, parent_id, after_id=current_id)
        if sibling is None:
            return None
        return self._descend_to_capsule(level, sibling.id)

    def resolve_next(self, capsule_id: ObjectId) -> Capsule:
        current: Optional[Capsule] = self.store.get(HierarchyLevel.CAPSULE, capsule_id)
        if current is None:
            raise NotFoundError(f"Capsule not found: {capsule_id}")

        # 1) 같은 Set 안의 다음 캡슐
        nxt = self.store.first_child(HierarchyLevel.CAPSULE, current.set_id, after_id=current.id)
        if nxt is not None:
            logger.info(f"[Next Resolver] {capsule_id} -> {nxt.id} (same set)")
            return nxt

        # 2) 같은 Subject 안의 다음 Set
        nxt = self._next_in_parent(HierarchyLevel.SET, current.subject_id, current.set_id)
        if nxt is not None:
            logger.info(f"[Next Resolver] {capsule_id} -> {nxt.id} (next set)")
            return nxt

        # 3) 같은 Theme 안의 다음 Subject
        nxt = self._next_in_parent(HierarchyLevel.SUBJECT, current.theme_id, current.subject_id)
        if nxt is not None:
            logger.info(f"[Next Resolver] {capsule_id} -> {nxt.id} (next subject)")
            return nxt

        # 4) 같은 Intent 안의 다음 Theme
        theme = self.store.get(HierarchyLevel.THEME, current.theme_id)
        if theme is None:
            raise NotFoundError(f"Theme not found: {current.theme_id}")
        nxt = self._next_in_parent(HierarchyLevel.THEME, theme.intent_id, theme.id)
        if nxt is not None:
            logger.info(f"[Next Resolver] {capsule_id} -> {nxt.id} (next theme)")
            return nxt

        # 5) fallback: 전체 인기 캡슐
        trending = self.store.top_saved_capsule()
        if trending is None:
            logger.warning("[Next Resolver] corpus is empty, nothing to recommend")
            raise NoRecommendationError()
        logger.info(f"[Next Resolver] {capsule_id} -> {trending.id} (trending fallback)")
        return trending
