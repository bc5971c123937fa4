from __future__ import annotations

import logging
from typing import Dict, List, Optional

from bson import ObjectId

from ..data.store import ContentStore
from ..errors import ValidationError
from ..models.data_models import Capsule, SampleResult
from .save_state import SaveStateJoiner

logger = logging.getLogger(__name__)

# 무작위 후보 풀 크기 (매 요청마다 전체 매칭 집합을 훑지 않기 위한 상한)
SAMPLE_POOL_SIZE = 100
DEFAULT_PAGE_SIZE = 10


def dedupe_by_id(capsules: List[Capsule]) -> List[Capsule]:
    """처음 등장한 순서를 유지하면서 id 중복 제거"""
    unique: Dict[ObjectId, Capsule] = {}
    for c in capsules:
        unique.setdefault(c.id, c)
    return list(unique.values())


class PreferenceSampler:
    """
    intent / theme 선호도 기반 무작위 캡슐 페이지.

    1) capsule.intent ∩ intent_ids ≠ ∅ OR capsule.theme ∈ theme_ids 인 캡슐 중
    2) 최대 pool_size 개를 무작위로 뽑고
    3) id 기준 중복 제거 후
    4) (page - 1) * page_size 부터 page_size 개를 자른다
    5) 각 캡슐에 isSaved 를 붙인다 (user 가 만든 폴더 기준)
    6) total_count 는 풀과 무관하게 조건에 맞는 캡슐 전체 개수

    NOTE: 풀 순서가 매 요청 무작위라 같은 page 를 다시 불러도 결과가 다를 수 있고,
    서로 다른 page 사이에 같은 캡슐이 다시 나오거나 빠질 수 있다.
    """

    def __init__(
        self,
        store: ContentStore,
        joiner: Optional[SaveStateJoiner] = None,
        pool_size: int = SAMPLE_POOL_SIZE,
    ):
        self.store = store
        self.joiner = joiner or SaveStateJoiner(store)
        self.pool_size = pool_size

    def sample(
        self,
        user_id: Optional[ObjectId],
        intent_ids: List[ObjectId],
        theme_ids: List[ObjectId],
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SampleResult:
        if user_id is None:
            raise ValidationError("User ID is required to fetch preferences.")
        if page < 1:
            raise ValidationError(f"page must be >= 1 (got {page})")
        if page_size < 1:
            raise ValidationError(f"page_size must be >= 1 (got {page_size})")

        if not intent_ids and not theme_ids:
            logger.info(f"[Sampler] user={user_id} has no intent/theme filter → empty result")
            return SampleResult(items=[], total_count=0, page=page, page_size=page_size)

        pool = self.store.sample_matching_capsules(intent_ids, theme_ids, self.pool_size)
        pool = dedupe_by_id(pool)

        offset = (page - 1) * page_size
        window = pool[offset: offset + page_size]
        items = self.joiner.annotate(user_id, window)

        total = self.store.count_matching_capsules(intent_ids, theme_ids)

        logger.info(
            f"[Sampler] user={user_id} intents={len(intent_ids)} themes={len(theme_ids)} "
            f"page={page} size={page_size} pool={len(pool)} returned={len(items)} total={total}"
        )
        return SampleResult(items=items, total_count=total, page=page, page_size=page_size)
