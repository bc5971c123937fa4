"""
형제 엔티티 간의 순서 정의.

- recommendedOrder 가 있으면 1차 키, id(생성 순서)가 동점 처리
- recommendedOrder 가 없는 엔티티는 순서가 있는 것들 뒤에 id 순으로
- next 탐색(cascade)은 recommendedOrder 를 보지 않고 id 순서만 쓴다 (id_key)
"""

from __future__ import annotations

from typing import Any, Iterable, List, Tuple, TypeVar

from bson import ObjectId

T = TypeVar("T")


def id_key(entity: Any) -> ObjectId:
    return entity.id


def ordinal_key(entity: Any) -> Tuple[int, int, ObjectId]:
    order = getattr(entity, "recommended_order", None)
    if order is None:
        return (1, 0, entity.id)
    return (0, int(order), entity.id)


def sort_siblings(entities: Iterable[T], use_recommended_order: bool = True) -> List[T]:
    key = ordinal_key if use_recommended_order else id_key
    return sorted(entities, key=key)
