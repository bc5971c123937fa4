"""
Unit tests for NextCapsuleResolver cascade.
"""

import pytest

from content_engine.data.memory_store import InMemoryContentStore
from content_engine.data.mock_data import MockCorpusBuilder, make_id
from content_engine.errors import NoRecommendationError, NotFoundError
from content_engine.models.data_models import Capsule
from content_engine.navigation.next_resolver import NextCapsuleResolver


class TestSameSetSuccessor:
    def test_next_in_same_set(self, corpus):
        c1, c2, c3 = corpus.capsules[:3]
        resolver = NextCapsuleResolver(corpus.store)
        assert resolver.resolve_next(c1.id).id == c2.id
        assert resolver.resolve_next(c2.id).id == c3.id

    def test_every_capsule_with_greater_sibling_gets_that_sibling(self, builder):
        subject = builder.subject(builder.theme(builder.intent()))
        content_set = builder.content_set(subject)
        capsules = [builder.capsule(content_set, f"c{i}") for i in range(6)]
        resolver = NextCapsuleResolver(builder.store)
        for current, expected in zip(capsules, capsules[1:]):
            assert resolver.resolve_next(current.id).id == expected.id

    def test_smallest_greater_id_wins_regardless_of_insert_order(self, builder):
        subject = builder.subject(builder.theme(builder.intent()))
        content_set = builder.content_set(subject)
        first = builder.capsule(content_set, "first")
        # ids 100 and 50 above the builder counter, inserted out of order
        far = builder.store.add_capsule(
            Capsule(id=make_id(100), title="far", set_id=content_set.id,
                    subject_id=subject.id, theme_id=subject.theme_id)
        )
        near = builder.store.add_capsule(
            Capsule(id=make_id(50), title="near", set_id=content_set.id,
                    subject_id=subject.id, theme_id=subject.theme_id)
        )
        resolver = NextCapsuleResolver(builder.store)
        assert resolver.resolve_next(first.id).id == near.id
        assert resolver.resolve_next(near.id).id == far.id


class TestCascade:
    def test_last_in_set_goes_to_first_of_next_set(self, corpus):
        c3, c4 = corpus.capsules[2], corpus.capsules[3]
        assert NextCapsuleResolver(corpus.store).resolve_next(c3.id).id == c4.id

    def test_last_set_escalates_to_next_subject(self, corpus):
        c4, c5 = corpus.capsules[3], corpus.capsules[4]
        assert NextCapsuleResolver(corpus.store).resolve_next(c4.id).id == c5.id

    def test_last_subject_escalates_to_next_theme(self, corpus):
        c5, c6 = corpus.capsules[4], corpus.capsules[5]
        assert NextCapsuleResolver(corpus.store).resolve_next(c5.id).id == c6.id

    def test_no_successor_falls_back_to_most_saved(self, corpus):
        c6, c7 = corpus.capsules[5], corpus.capsules[6]
        assert NextCapsuleResolver(corpus.store).resolve_next(c6.id).id == c7.id

    def test_fallback_may_return_the_input_capsule(self, corpus):
        c7 = corpus.capsules[6]
        assert NextCapsuleResolver(corpus.store).resolve_next(c7.id).id == c7.id

    def test_cascade_does_not_cross_into_other_intent(self, builder):
        i1 = builder.intent("I1")
        t1 = builder.theme(i1)
        only = builder.capsule(builder.content_set(builder.subject(t1)), "only", save_count=1)
        i2 = builder.intent("I2")
        other = builder.capsule(builder.content_set(builder.subject(builder.theme(i2))), "other", save_count=0)

        resolved = NextCapsuleResolver(builder.store).resolve_next(only.id)
        # other intent is never walked; fallback picks the most saved capsule
        assert resolved.id == only.id
        assert resolved.id != other.id


class TestEmptyBranches:
    def test_empty_next_set_falls_through_to_next_subject(self, builder):
        theme = builder.theme(builder.intent())
        s1 = builder.subject(theme, "S1")
        c1 = builder.capsule(builder.content_set(s1, "A"), "c1")
        builder.content_set(s1, "B-empty")
        skipped = builder.capsule(builder.content_set(s1, "C"), "skipped")
        s2 = builder.subject(theme, "S2")
        target = builder.capsule(builder.content_set(s2, "D"), "target")

        resolved = NextCapsuleResolver(builder.store).resolve_next(c1.id)
        assert resolved.id == target.id
        assert resolved.id != skipped.id

    def test_next_subject_without_sets_falls_through_to_next_theme(self, builder):
        intent = builder.intent()
        t1 = builder.theme(intent, "T1")
        s1 = builder.subject(t1, "S1")
        c1 = builder.capsule(builder.content_set(s1), "c1")
        builder.subject(t1, "S2-no-sets")
        s3 = builder.subject(t1, "S3")
        builder.capsule(builder.content_set(s3), "skipped")
        t2 = builder.theme(intent, "T2")
        target = builder.capsule(builder.content_set(builder.subject(t2)), "target")

        assert NextCapsuleResolver(builder.store).resolve_next(c1.id).id == target.id

    def test_next_theme_with_empty_first_set_falls_back(self, builder):
        intent = builder.intent()
        t1 = builder.theme(intent, "T1")
        c1 = builder.capsule(builder.content_set(builder.subject(t1)), "c1", save_count=2)
        t2 = builder.theme(intent, "T2")
        s2 = builder.subject(t2)
        builder.content_set(s2, "empty-first-set")
        builder.capsule(builder.content_set(s2, "second"), "skipped", save_count=1)

        assert NextCapsuleResolver(builder.store).resolve_next(c1.id).id == c1.id


class TestTrendingFallback:
    def test_tie_on_save_count_picks_smallest_id(self, builder):
        theme_a = builder.theme(builder.intent("A"))
        lone = builder.capsule(builder.content_set(builder.subject(theme_a)), "lone", save_count=1)
        theme_b = builder.theme(builder.intent("B"))
        set_b = builder.content_set(builder.subject(theme_b))
        first_top = builder.capsule(set_b, "first-top", save_count=9)
        builder.capsule(set_b, "second-top", save_count=9)

        assert NextCapsuleResolver(builder.store).resolve_next(lone.id).id == first_top.id

    def test_empty_corpus_raises_no_recommendation(self):
        class EmptyTrendingStore(InMemoryContentStore):
            def top_saved_capsule(self):
                return None

        b = MockCorpusBuilder(EmptyTrendingStore())
        lone = b.capsule(b.content_set(b.subject(b.theme(b.intent()))), "lone")

        with pytest.raises(NoRecommendationError):
            NextCapsuleResolver(b.store).resolve_next(lone.id)


class TestNotFound:
    def test_unknown_capsule(self, corpus):
        with pytest.raises(NotFoundError):
            NextCapsuleResolver(corpus.store).resolve_next(make_id(123_456))

    def test_missing_theme_when_cascade_reaches_intent_level(self):
        store = InMemoryContentStore()
        orphan = store.add_capsule(
            Capsule(id=make_id(1), title="orphan", set_id=make_id(2),
                    subject_id=make_id(3), theme_id=make_id(4))
        )
        with pytest.raises(NotFoundError):
            NextCapsuleResolver(store).resolve_next(orphan.id)
