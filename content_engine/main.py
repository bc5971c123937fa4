from .data.mock_data import DEMO_USER_ID, build_mock_corpus
from .data.store import HierarchyLevel
from .navigation import NextCapsuleResolver, PreferenceSampler


def demo_next_capsules():
    store = build_mock_corpus()
    resolver = NextCapsuleResolver(store)

    print("=== Next capsule cascade ===")
    for intent in store.children(HierarchyLevel.INTENT, None):
        for theme in store.children(HierarchyLevel.THEME, intent.id):
            for subject in store.children(HierarchyLevel.SUBJECT, theme.id):
                for content_set in store.children(HierarchyLevel.SET, subject.id):
                    for capsule in store.children(HierarchyLevel.CAPSULE, content_set.id):
                        nxt = resolver.resolve_next(capsule.id)
                        print(f"{capsule.title:<20} -> {nxt.title}")


def demo_preference_sample(page_size: int = 3):
    store = build_mock_corpus()
    sampler = PreferenceSampler(store)
    intent_ids = [i.id for i in store.children(HierarchyLevel.INTENT, None)][:1]

    print(f"=== Random capsules for user {DEMO_USER_ID} ===")
    result = sampler.sample(DEMO_USER_ID, intent_ids, [], page=1, page_size=page_size)
    for item in result.items:
        print(f"{item.capsule.title} (saved={item.is_saved})")
    print(result.pagination_dict())


if __name__ == "__main__":
    demo_next_capsules()
    demo_preference_sample()
