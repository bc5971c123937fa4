from __future__ import annotations

import logging
from typing import List, Sequence

from bson import ObjectId

from ..data.store import ContentStore
from ..models.data_models import Capsule, SampledCapsule

logger = logging.getLogger(__name__)


class SaveStateJoiner:
    """
    캡슐 저장 여부 판단.

    user 가 "생성한" 폴더에 캡슐이 들어 있을 때만 저장된 것으로 본다.
    public 폴더의 참여자(participant)인 것만으로는 저장이 아니다.
    """

    def __init__(self, store: ContentStore):
        self.store = store

    def is_saved(self, user_id: ObjectId, capsule_id: ObjectId) -> bool:
        saved = self.store.find_by_creator_containing(user_id, capsule_id)
        logger.debug(f"[Save State] user={user_id} capsule={capsule_id} saved={saved}")
        return saved

    def annotate(self, user_id: ObjectId, capsules: Sequence[Capsule]) -> List[SampledCapsule]:
        if not capsules:
            return []
        saved_ids = self.store.saved_capsule_ids(user_id, [c.id for c in capsules])
        return [SampledCapsule(capsule=c, is_saved=c.id in saved_ids) for c in capsules]
