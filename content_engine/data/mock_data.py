from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np
from bson import ObjectId

from ..models.data_models import (
    Capsule,
    CapsuleMetadata,
    ContentSet,
    Folder,
    Intent,
    Subject,
    Theme,
    TimelineTask,
)
from .memory_store import InMemoryContentStore
from .store import HierarchyLevel


def make_id(n: int) -> ObjectId:
    """정수 → ObjectId. 큰 수일수록 id 도 크다 (생성 순서 흉내)."""
    return ObjectId(f"{n:024x}")


DEMO_USER_ID = make_id(10_000)


class MockCorpusBuilder:
    """
    InMemoryContentStore 에 계층 데이터를 순서대로 쌓는 헬퍼.
    호출 순서대로 id 가 증가하므로 "먼저 만든 것 = 작은 id".
    """

    def __init__(self, store: Optional[InMemoryContentStore] = None, start: int = 1):
        self.store = store or InMemoryContentStore()
        self._counter = start

    def next_id(self) -> ObjectId:
        oid = make_id(self._counter)
        self._counter += 1
        return oid

    def intent(self, name: str = "intent") -> Intent:
        return self.store.add_intent(Intent(id=self.next_id(), name=name))

    def theme(self, intent: Intent, name: str = "theme") -> Theme:
        return self.store.add_theme(Theme(id=self.next_id(), name=name, intent_id=intent.id))

    def subject(self, theme: Theme, name: str = "subject") -> Subject:
        return self.store.add_subject(Subject(id=self.next_id(), name=name, theme_id=theme.id))

    def content_set(
        self,
        subject: Subject,
        name: str = "set",
        recommended_order: Optional[int] = None,
    ) -> ContentSet:
        content_set = ContentSet(
            id=self.next_id(),
            name=name,
            subject_id=subject.id,
            recommended_order=recommended_order,
        )
        self.store.add_set(content_set)
        subject.default_timeline.append(TimelineTask(set_id=content_set.id, recommended_order=recommended_order))
        return content_set

    def capsule(
        self,
        content_set: ContentSet,
        title: str = "capsule",
        save_count: int = 0,
        intent_tags: Optional[List[str]] = None,
    ) -> Capsule:
        subject = self.store.get(HierarchyLevel.SUBJECT, content_set.subject_id)
        theme = self.store.get(HierarchyLevel.THEME, subject.theme_id)
        if intent_tags is None:
            intent_tags = [str(theme.intent_id)] if theme.intent_id else []
        return self.store.add_capsule(
            Capsule(
                id=self.next_id(),
                title=title,
                set_id=content_set.id,
                subject_id=subject.id,
                theme_id=theme.id,
                intent_tags=intent_tags,
                slides=[{"type": "text", "content": f"{title} slide"}],
                metadata=CapsuleMetadata(save_count=save_count),
                question_or_poll={"type": "question", "content": f"What did you learn from {title}?"},
            )
        )

    def folder(
        self,
        creator_id: ObjectId,
        capsules: Iterable[Capsule] = (),
        participant_ids: Iterable[ObjectId] = (),
        privacy: str = "personal",
        name: str = "Default Folder",
    ) -> Folder:
        return self.store.add_folder(
            Folder(
                id=self.next_id(),
                name=name,
                creator_id=creator_id,
                privacy=privacy,
                participant_ids=list(participant_ids),
                capsule_ids=[c.id for c in capsules],
            )
        )


def build_mock_corpus(rng: Optional[np.random.Generator] = None) -> InMemoryContentStore:
    """데모 / CONTENT_STORE=memory 용 작은 코퍼스"""
    b = MockCorpusBuilder(InMemoryContentStore(rng=rng))

    career = b.intent("Career growth")
    wellbeing = b.intent("Wellbeing")

    programming = b.theme(career, "Programming")
    leadership = b.theme(career, "Leadership")
    sleep = b.theme(wellbeing, "Sleep")

    python = b.subject(programming, "Python")
    react = b.subject(programming, "React Native")
    feedback = b.subject(leadership, "Giving feedback")
    habits = b.subject(sleep, "Sleep habits")

    basics = b.content_set(python, "Python basics", recommended_order=1)
    idioms = b.content_set(python, "Pythonic idioms", recommended_order=2)
    components = b.content_set(react, "Components", recommended_order=1)
    one_on_ones = b.content_set(feedback, "1:1 meetings")
    routines = b.content_set(habits, "Evening routines")

    for i, title in enumerate(["Variables", "Loops", "Functions"]):
        b.capsule(basics, title, save_count=3 + i)
    for i, title in enumerate(["Comprehensions", "Context managers"]):
        b.capsule(idioms, title, save_count=10 + i)
    b.capsule(components, "Props and state", save_count=7)
    b.capsule(one_on_ones, "Preparing a 1:1", save_count=25)
    b.capsule(routines, "Screens off", save_count=12)
    b.capsule(routines, "Wind-down reading", save_count=4)

    saved = b.store.children(HierarchyLevel.CAPSULE, basics.id)[:2]
    b.folder(DEMO_USER_ID, saved)
    return b.store
