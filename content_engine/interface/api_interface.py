from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

from ..data.preprocess import parse_id_list, parse_object_id
from ..navigation.sampler import DEFAULT_PAGE_SIZE
from ..service import pipeline

logger = logging.getLogger(__name__)

IdListInput = Union[None, str, Iterable[str]]


# ------------------------------------------------------
# 다음 캡슐 API
# ------------------------------------------------------
def get_next_capsule(capsule_id: Optional[str]) -> Dict[str, Any]:
    oid = parse_object_id(capsule_id, "capsuleId")
    capsule = pipeline.next_capsule(oid)
    return {"success": True, "data": capsule.to_frontend_dict()}


# ------------------------------------------------------
# 선호도 기반 무작위 캡슐 API
# ------------------------------------------------------
def get_capsules_by_preferences(
    user_id: Optional[str],
    intents: IdListInput = None,
    themes: IdListInput = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Dict[str, Any]:
    """
    user_id 필수. intents / themes 는 "a,b,c" 문자열 또는 id 리스트.
    둘 다 비어 있으면 빈 결과 (totalItems=0).
    """
    uid = parse_object_id(user_id, "userId")
    intent_ids = parse_id_list(intents, "intentId")
    theme_ids = parse_id_list(themes, "themeId")

    result = pipeline.sample_capsules(uid, intent_ids, theme_ids, page=page, page_size=limit)
    return {
        "success": True,
        "message": "Random capsules fetched successfully.",
        "data": [item.to_frontend_dict() for item in result.items],
        "pagination": result.pagination_dict(),
    }


# ------------------------------------------------------
# 저장 여부 API
# ------------------------------------------------------
def get_saved_status(user_id: Optional[str], capsule_id: Optional[str]) -> Dict[str, Any]:
    uid = parse_object_id(user_id, "userId")
    cid = parse_object_id(capsule_id, "capsuleId")
    return {"success": True, "data": {"isSaved": pipeline.is_capsule_saved(uid, cid)}}


# ------------------------------------------------------
# 추천(인기) 캡슐 API
# ------------------------------------------------------
def get_suggested_capsules(user_id: Optional[str], limit: int = pipeline.SUGGESTED_LIMIT) -> Dict[str, Any]:
    uid = parse_object_id(user_id, "userId")
    capsules = pipeline.suggested_capsules(uid, limit=limit)
    return {
        "success": True,
        "data": [
            {"id": str(c.id), "title": c.title, "saveCount": c.metadata.save_count}
            for c in capsules
        ],
    }


# ------------------------------------------------------
# 폴더 / 선호도 / 타임라인
# ------------------------------------------------------
def get_user_folders(user_id: Optional[str]) -> Dict[str, Any]:
    uid = parse_object_id(user_id, "userId")
    folders = pipeline.user_folders(uid)
    return {"success": True, "data": [f.to_frontend_dict() for f in folders]}


def save_preferences(
    user_id: Optional[str],
    intents: IdListInput = None,
    themes: IdListInput = None,
) -> Dict[str, Any]:
    uid = parse_object_id(user_id, "userId")
    preference, created = pipeline.save_user_preferences(
        uid,
        parse_id_list(intents, "intentId"),
        parse_id_list(themes, "themeId"),
    )
    return {
        "success": True,
        "created": created,
        "message": "Preferences saved successfully" if created else "Preferences updated successfully",
        "preferences": preference.to_frontend_dict(),
    }


def get_subject_timeline(subject_id: Optional[str]) -> Dict[str, Any]:
    sid = parse_object_id(subject_id, "subjectId")
    sets = pipeline.subject_timeline(sid)
    return {
        "success": True,
        "data": [
            {"id": str(s.id), "name": s.name, "recommendedOrder": s.recommended_order}
            for s in sets
        ],
    }
