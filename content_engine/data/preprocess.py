from typing import Iterable, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId

from ..errors import ValidationError

IdLike = Union[str, ObjectId]


def normalize_id_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return text.strip().lower()


def parse_object_id(value: Optional[IdLike], field_name: str = "id") -> ObjectId:
    """문자열/ObjectId 를 ObjectId 로 변환. 비어 있거나 형식이 틀리면 ValidationError."""
    if isinstance(value, ObjectId):
        return value
    text = normalize_id_text(value)
    if not text:
        raise ValidationError(f"{field_name} is required")
    try:
        return ObjectId(text)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field_name} format: {value!r}") from None


def parse_id_list(
    values: Union[None, str, Iterable[IdLike]],
    field_name: str = "ids",
) -> List[ObjectId]:
    """
    "a,b,c" 형태의 쿼리 문자열 또는 id 리스트를 ObjectId 리스트로 변환.

    - 빈 항목은 무시
    - 중복은 처음 등장한 순서를 유지한 채 제거
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")

    result: List[ObjectId] = []
    seen = set()
    for v in values:
        if isinstance(v, str) and not v.strip():
            continue
        oid = parse_object_id(v, field_name)
        if oid not in seen:
            seen.add(oid)
            result.append(oid)
    return result
