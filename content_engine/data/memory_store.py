from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

import numpy as np
from bson import ObjectId

from ..models.data_models import (
    Capsule,
    ContentSet,
    Folder,
    Intent,
    Subject,
    Theme,
    UserPreference,
)
from .store import ContentStore, Entity, HierarchyLevel


def _parent_id(level: HierarchyLevel, entity: Entity) -> Optional[ObjectId]:
    if level is HierarchyLevel.CAPSULE:
        return entity.set_id
    if level is HierarchyLevel.SET:
        return entity.subject_id
    if level is HierarchyLevel.SUBJECT:
        return entity.theme_id
    if level is HierarchyLevel.THEME:
        return entity.intent_id
    return None


class InMemoryContentStore(ContentStore):
    """
    MongoContentStore 와 같은 계약을 만족하는 메모리 구현.

    - 테스트 / 데모 / CONTENT_STORE=memory 실행용
    - $sample 은 numpy Generator 로 비복원 추출 (rng 를 넘기면 재현 가능)
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng or np.random.default_rng()
        self._entities: Dict[HierarchyLevel, Dict[ObjectId, Entity]] = {lvl: {} for lvl in HierarchyLevel}
        self._folders: Dict[ObjectId, Folder] = {}
        self._preferences: Dict[ObjectId, UserPreference] = {}

    # ------------------------------------------------------
    # 적재
    # ------------------------------------------------------
    def add(self, level: HierarchyLevel, entity: Entity) -> Entity:
        self._entities[level][entity.id] = entity
        return entity

    def add_intent(self, intent: Intent) -> Intent:
        return self.add(HierarchyLevel.INTENT, intent)

    def add_theme(self, theme: Theme) -> Theme:
        return self.add(HierarchyLevel.THEME, theme)

    def add_subject(self, subject: Subject) -> Subject:
        return self.add(HierarchyLevel.SUBJECT, subject)

    def add_set(self, content_set: ContentSet) -> ContentSet:
        return self.add(HierarchyLevel.SET, content_set)

    def add_capsule(self, capsule: Capsule) -> Capsule:
        return self.add(HierarchyLevel.CAPSULE, capsule)

    def add_folder(self, folder: Folder) -> Folder:
        self._folders[folder.id] = folder
        return folder

    def _sorted(self, level: HierarchyLevel) -> List[Entity]:
        return sorted(self._entities[level].values(), key=lambda e: e.id)

    # ------------------------------------------------------
    # Hierarchy 조회
    # ------------------------------------------------------
    def get(self, level: HierarchyLevel, entity_id: ObjectId) -> Optional[Entity]:
        return self._entities[level].get(entity_id)

    def first_child(
        self,
        level: HierarchyLevel,
        parent_id: Optional[ObjectId],
        after_id: Optional[ObjectId] = None,
    ) -> Optional[Entity]:
        for e in self._sorted(level):
            if _parent_id(level, e) != parent_id:
                continue
            if after_id is not None and not e.id > after_id:
                continue
            return e
        return None

    def children(self, level: HierarchyLevel, parent_id: Optional[ObjectId]) -> List[Entity]:
        return [e for e in self._sorted(level) if _parent_id(level, e) == parent_id]

    def top_saved_capsule(self) -> Optional[Capsule]:
        top = self.top_saved_capsules(limit=1)
        return top[0] if top else None

    def top_saved_capsules(self, limit: int, exclude_ids: Iterable[ObjectId] = ()) -> List[Capsule]:
        exclude = set(exclude_ids)
        capsules = [c for c in self._sorted(HierarchyLevel.CAPSULE) if c.id not in exclude]
        # id 오름차순으로 정렬된 상태에서 stable sort → 동점은 id 작은 순
        capsules.sort(key=lambda c: c.metadata.save_count, reverse=True)
        return capsules[:limit]

    # ------------------------------------------------------
    # 선호도 기반 샘플링
    # ------------------------------------------------------
    def _matching(self, intent_ids: List[ObjectId], theme_ids: List[ObjectId]) -> List[Capsule]:
        intent_tags = {str(i) for i in intent_ids}
        themes = set(theme_ids)
        return [
            c
            for c in self._sorted(HierarchyLevel.CAPSULE)
            if intent_tags.intersection(c.intent_tags) or c.theme_id in themes
        ]

    def count_matching_capsules(self, intent_ids: List[ObjectId], theme_ids: List[ObjectId]) -> int:
        return len(self._matching(intent_ids, theme_ids))

    def sample_matching_capsules(
        self, intent_ids: List[ObjectId], theme_ids: List[ObjectId], size: int
    ) -> List[Capsule]:
        matches = self._matching(intent_ids, theme_ids)
        if not matches or size <= 0:
            return []
        picked = self.rng.choice(len(matches), size=min(size, len(matches)), replace=False)
        return [matches[int(i)] for i in picked]

    # ------------------------------------------------------
    # Folder collaborator
    # ------------------------------------------------------
    def find_by_creator_containing(self, user_id: ObjectId, capsule_id: ObjectId) -> bool:
        return any(
            f.creator_id == user_id and capsule_id in f.capsule_ids
            for f in self._folders.values()
        )

    def saved_capsule_ids(
        self, user_id: ObjectId, capsule_ids: Optional[Iterable[ObjectId]] = None
    ) -> Set[ObjectId]:
        saved: Set[ObjectId] = set()
        for f in self._folders.values():
            if f.creator_id == user_id:
                saved.update(f.capsule_ids)
        if capsule_ids is not None:
            saved &= set(capsule_ids)
        return saved

    def folders_for_user(self, user_id: ObjectId) -> List[Folder]:
        return [
            f
            for f in sorted(self._folders.values(), key=lambda f: f.id)
            if f.creator_id == user_id or user_id in f.participant_ids
        ]

    # ------------------------------------------------------
    # UserPreference
    # ------------------------------------------------------
    def get_preference(self, user_id: ObjectId) -> Optional[UserPreference]:
        return self._preferences.get(user_id)

    def save_preference(self, preference: UserPreference) -> None:
        self._preferences[preference.user_id] = preference
