"""
저장소 계약 (Hierarchy Store + Folder collaborator).

navigation 계층은 이 인터페이스에만 의존하고,
실제 구현은 MongoContentStore(운영) / InMemoryContentStore(테스트, 데모) 두 가지.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, List, Optional, Set, Union

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

Entity = Union[Intent, Theme, Subject, ContentSet, Capsule]


class HierarchyLevel(str, Enum):
    INTENT = "intent"
    THEME = "theme"
    SUBJECT = "subject"
    SET = "set"
    CAPSULE = "capsule"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]

    @property
    def parent_field(self) -> Optional[str]:
        """부모 참조가 저장되는 필드 이름 (intent 는 루트라 None)"""
        return _PARENT_FIELDS[self]


_COLLECTIONS = {
    HierarchyLevel.INTENT: "intents",
    HierarchyLevel.THEME: "themes",
    HierarchyLevel.SUBJECT: "subjects",
    HierarchyLevel.SET: "sets",
    HierarchyLevel.CAPSULE: "capsules",
}

_PARENT_FIELDS = {
    HierarchyLevel.INTENT: None,
    HierarchyLevel.THEME: "intentId",
    HierarchyLevel.SUBJECT: "theme",
    HierarchyLevel.SET: "subject",
    HierarchyLevel.CAPSULE: "set",
}


class ContentStore(ABC):

    # ------------------------------------------------------
    # Hierarchy 조회
    # ------------------------------------------------------
    @abstractmethod
    def get(self, level: HierarchyLevel, entity_id: ObjectId) -> Optional[Entity]:
        """id 로 단건 조회"""

    @abstractmethod
    def first_child(
        self,
        level: HierarchyLevel,
        parent_id: Optional[ObjectId],
        after_id: Optional[ObjectId] = None,
    ) -> Optional[Entity]:
        """
        parent_id 아래의 level 엔티티 중 id 가 가장 작은 것.
        after_id 가 주어지면 id > after_id 인 것 중에서 찾는다.
        """

    @abstractmethod
    def children(self, level: HierarchyLevel, parent_id: Optional[ObjectId]) -> List[Entity]:
        """parent_id 아래의 level 엔티티 전체 (id 오름차순)"""

    @abstractmethod
    def top_saved_capsule(self) -> Optional[Capsule]:
        """saveCount 최댓값 캡슐 (동점이면 id 가 가장 작은 것)"""

    @abstractmethod
    def top_saved_capsules(
        self, limit: int, exclude_ids: Iterable[ObjectId] = ()
    ) -> List[Capsule]:
        """saveCount 내림차순 + id 오름차순 상위 limit 개"""

    # ------------------------------------------------------
    # 선호도 기반 샘플링
    # ------------------------------------------------------
    @abstractmethod
    def count_matching_capsules(
        self, intent_ids: List[ObjectId], theme_ids: List[ObjectId]
    ) -> int:
        """intent 태그 교집합 OR theme 포함 조건에 맞는 캡슐 수 (정확한 값)"""

    @abstractmethod
    def sample_matching_capsules(
        self, intent_ids: List[ObjectId], theme_ids: List[ObjectId], size: int
    ) -> List[Capsule]:
        """조건에 맞는 캡슐 중 최대 size 개를 무작위로 뽑는다 (순서도 무작위)"""

    # ------------------------------------------------------
    # Folder collaborator
    # ------------------------------------------------------
    @abstractmethod
    def find_by_creator_containing(self, user_id: ObjectId, capsule_id: ObjectId) -> bool:
        """user_id 가 만든 폴더 중 capsule_id 를 담은 폴더가 있는지"""

    @abstractmethod
    def saved_capsule_ids(
        self, user_id: ObjectId, capsule_ids: Optional[Iterable[ObjectId]] = None
    ) -> Set[ObjectId]:
        """
        user_id 가 만든 폴더들에 담긴 캡슐 id 집합.
        capsule_ids 가 주어지면 그 안에서만 확인한다.
        """

    @abstractmethod
    def folders_for_user(self, user_id: ObjectId) -> List[Folder]:
        """user_id 가 생성자이거나 참여자인 폴더 목록"""

    # ------------------------------------------------------
    # UserPreference
    # ------------------------------------------------------
    @abstractmethod
    def get_preference(self, user_id: ObjectId) -> Optional[UserPreference]:
        ...

    @abstractmethod
    def save_preference(self, preference: UserPreference) -> None:
        ...
