"""
content_engine 예외 계층.

- ValidationError: 잘못되었거나 누락된 입력 (400)
- NotFoundError: 참조한 엔티티가 없음 (404)
- NoRecommendationError: 입력은 정상이지만 추천할 캡슐이 전혀 없음 (404)
- StoreError: MongoDB 등 저장소 장애 (500, 내부 재시도 없음)
"""

from __future__ import annotations


class ContentEngineError(Exception):
    status_code: int = 500
    code: str = "content_engine_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"success": False, "code": self.code, "message": self.message}


class ValidationError(ContentEngineError):
    status_code = 400
    code = "validation_error"


class NotFoundError(ContentEngineError):
    status_code = 404
    code = "not_found"


class NoRecommendationError(ContentEngineError):
    status_code = 404
    code = "no_recommendation"

    def __init__(self, message: str = "No recommendations available"):
        super().__init__(message)


class StoreError(ContentEngineError):
    status_code = 500
    code = "store_error"
