"""
Unit tests for SaveStateJoiner (creator-scoped save state).
"""

from content_engine.navigation.save_state import SaveStateJoiner


class TestIsSaved:
    def test_capsule_in_own_folder_is_saved(self, corpus, user_id):
        c1 = corpus.capsules[0]
        corpus.builder.folder(user_id, [c1])
        assert SaveStateJoiner(corpus.store).is_saved(user_id, c1.id) is True

    def test_capsule_not_in_any_folder(self, corpus, user_id):
        assert SaveStateJoiner(corpus.store).is_saved(user_id, corpus.capsules[0].id) is False

    def test_participant_only_is_not_saved(self, corpus, user_id, other_user_id):
        c1 = corpus.capsules[0]
        corpus.builder.folder(other_user_id, [c1], participant_ids=[user_id], privacy="public")

        joiner = SaveStateJoiner(corpus.store)
        assert joiner.is_saved(user_id, c1.id) is False
        assert joiner.is_saved(other_user_id, c1.id) is True

    def test_any_of_several_folders(self, corpus, user_id):
        c1, c2 = corpus.capsules[:2]
        corpus.builder.folder(user_id, [c1], name="first")
        corpus.builder.folder(user_id, [c2], name="second")

        joiner = SaveStateJoiner(corpus.store)
        assert joiner.is_saved(user_id, c1.id)
        assert joiner.is_saved(user_id, c2.id)
        assert not joiner.is_saved(user_id, corpus.capsules[2].id)


class TestAnnotate:
    def test_annotate_preserves_order(self, corpus, user_id, other_user_id):
        c1, c2, c3 = corpus.capsules[:3]
        corpus.builder.folder(user_id, [c2])
        corpus.builder.folder(other_user_id, [c3], participant_ids=[user_id], privacy="public")

        items = SaveStateJoiner(corpus.store).annotate(user_id, [c3, c2, c1])
        assert [(i.capsule.id, i.is_saved) for i in items] == [(c3.id, False), (c2.id, True), (c1.id, False)]

    def test_annotate_empty(self, corpus, user_id):
        assert SaveStateJoiner(corpus.store).annotate(user_id, []) == []

    def test_frontend_dict_carries_flag(self, corpus, user_id):
        c1 = corpus.capsules[0]
        corpus.builder.folder(user_id, [c1])
        data = SaveStateJoiner(corpus.store).annotate(user_id, [c1])[0].to_frontend_dict()
        assert data["id"] == str(c1.id)
        assert data["isSaved"] is True
