"""
캡슐 콘텐츠 엔진 서버 - FastAPI 메인 파일.

다음 캡슐(cascade), 선호도 기반 무작위 캡슐, 저장 여부 API를 제공합니다.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Response
from pydantic import BaseModel

from content_engine.errors import ContentEngineError
from content_engine.interface.api_interface import (
    get_capsules_by_preferences,
    get_next_capsule,
    get_saved_status,
    get_subject_timeline,
    get_suggested_capsules,
    get_user_folders,
    save_preferences,
)
from content_engine.service.pipeline import get_store

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


# --- Schemas (프론트 응답 형식에 맞춤) ---


class CapsuleMetadataModel(BaseModel):
    author: Optional[str] = None
    estimatedReadTime: Optional[float] = None
    saveCount: int = 0
    viewCount: int = 0


class CapsuleModel(BaseModel):
    """캡슐 (isSaved 는 선호도 기반 목록에서만 채워짐)"""
    id: str
    title: str
    slides: List[Dict[str, Any]] = []
    intent: List[str] = []
    theme: str
    subject: str
    set: str
    tags: List[str] = []
    metadata: CapsuleMetadataModel
    questionOrPoll: Optional[Dict[str, Any]] = None
    createdAt: Optional[datetime] = None
    isSaved: Optional[bool] = None


class NextCapsuleResponse(BaseModel):
    success: bool
    data: CapsuleModel


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int


class PreferenceCapsulesResponse(BaseModel):
    success: bool
    message: str
    data: List[CapsuleModel]
    pagination: Pagination


class SavedStatusRequest(BaseModel):
    userId: Optional[str] = None
    capsuleId: Optional[str] = None


class SavedStatusData(BaseModel):
    isSaved: bool


class SavedStatusResponse(BaseModel):
    success: bool
    data: SavedStatusData


class SuggestedCapsule(BaseModel):
    id: str
    title: str
    saveCount: int


class SuggestedCapsulesResponse(BaseModel):
    success: bool
    data: List[SuggestedCapsule]


class FolderModel(BaseModel):
    id: str
    name: str
    privacy: str
    creator: str
    participants: List[str] = []
    capsules: List[str] = []


class FoldersResponse(BaseModel):
    success: bool
    data: List[FolderModel]


class PreferenceRequest(BaseModel):
    userId: Optional[str] = None
    intents: List[str] = []
    themes: List[str] = []


class PreferenceModel(BaseModel):
    userId: str
    intents: List[str]
    themes: List[str]


class PreferenceResponse(BaseModel):
    success: bool
    created: bool
    message: str
    preferences: PreferenceModel


class TimelineSet(BaseModel):
    id: str
    name: str
    recommendedOrder: Optional[int] = None


class TimelineResponse(BaseModel):
    success: bool
    data: List[TimelineSet]


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    service: str
    version: str


# --- Helper Functions ---


def to_http_error(e: ContentEngineError) -> HTTPException:
    """엔진 예외 → HTTP 상태 코드 (400 / 404 / 500)"""
    return HTTPException(status_code=e.status_code, detail={"code": e.code, "message": e.message})


# --- Lifespan ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작 및 종료"""
    logger.info("[Startup] Content Engine Server starting...")

    # 저장소 연결은 lazy 지만 시작 시 한 번 만들어 둔다
    try:
        store = get_store()
        logger.info(f"[Startup] Content store ready: {type(store).__name__}")
    except Exception as e:
        logger.warning(f"[Startup] Store warmup failed (will retry on first request): {e}")

    yield

    logger.info("[Shutdown] Content Engine Server shutting down...")


app = FastAPI(
    title="Content Engine Server",
    description="Intent → Theme → Subject → Set → Capsule 탐색 / 추천 API",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# --- API Endpoints ---


@app.get("/")
def root():
    """루트 엔드포인트"""
    return {
        "message": "Content Engine Server",
        "version": SERVICE_VERSION,
        "endpoints": [
            "/health",
            "/capsules/getNext/{capsule_id}",
            "/capsules/preferences",
            "/capsules/getSavedStatus",
            "/capsules/get-suggested",
            "/folders",
            "/preferences",
            "/subjects/{subject_id}/timeline",
        ],
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """헬스 체크"""
    return HealthResponse(status="ok", service="content-engine", version=SERVICE_VERSION)


@app.get("/capsules/getNext/{capsule_id}", response_model=NextCapsuleResponse)
def next_capsule(capsule_id: str):
    """
    다음 캡슐.

    같은 Set → 다음 Set → 다음 Subject → 다음 Theme 순으로 찾고,
    아무것도 없으면 saveCount 가 가장 높은 캡슐을 돌려준다.
    """
    try:
        logger.info(f"[API] Next capsule: capsule_id={capsule_id}")
        return get_next_capsule(capsule_id)
    except ContentEngineError as e:
        logger.info(f"[API] Next capsule rejected: {e.code} ({e.message})")
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Next capsule error: {e}")
        raise HTTPException(status_code=500, detail=f"다음 캡슐 조회 실패: {str(e)}")


@app.get("/capsules/preferences", response_model=PreferenceCapsulesResponse)
def capsules_by_preferences(
    user_id: Optional[str] = Query(None, alias="userId", description="사용자 ID"),
    intents: str = Query("", description="쉼표로 구분된 Intent ID 목록"),
    themes: str = Query("", description="쉼표로 구분된 Theme ID 목록"),
    page: int = Query(1, description="페이지 (1부터)"),
    limit: int = Query(10, description="페이지 크기"),
):
    """
    선호도 기반 무작위 캡슐.

    NOTE: 매 요청마다 무작위 풀(최대 100개)에서 페이지를 자르므로
    같은 page 를 다시 요청해도 결과가 다를 수 있다. totalItems 는 정확한 값.
    """
    try:
        logger.info(f"[API] Preference capsules: user_id={user_id}, page={page}, limit={limit}")
        result = get_capsules_by_preferences(user_id, intents, themes, page=page, limit=limit)
        logger.info(f"[API] Returned {len(result['data'])} capsules (total={result['pagination']['totalItems']})")
        return result
    except ContentEngineError as e:
        logger.info(f"[API] Preference capsules rejected: {e.code} ({e.message})")
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Preference capsules error: {e}")
        raise HTTPException(status_code=500, detail=f"선호도 캡슐 조회 실패: {str(e)}")


@app.post("/capsules/getSavedStatus", response_model=SavedStatusResponse)
def saved_status(request: SavedStatusRequest):
    """user 가 만든 폴더에 캡슐이 들어 있는지 (참여 폴더는 제외)"""
    try:
        logger.info(f"[API] Saved status: user_id={request.userId}, capsule_id={request.capsuleId}")
        return get_saved_status(request.userId, request.capsuleId)
    except ContentEngineError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Saved status error: {e}")
        raise HTTPException(status_code=500, detail=f"저장 여부 조회 실패: {str(e)}")


@app.get("/capsules/get-suggested", response_model=SuggestedCapsulesResponse)
def suggested_capsules(
    user_id: Optional[str] = Query(None, alias="userId", description="사용자 ID"),
    limit: int = Query(10, ge=1, le=50, description="추천 개수"),
):
    """아직 저장하지 않은 캡슐 중 saveCount 상위"""
    try:
        return get_suggested_capsules(user_id, limit=limit)
    except ContentEngineError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Suggested capsules error: {e}")
        raise HTTPException(status_code=500, detail=f"추천 캡슐 조회 실패: {str(e)}")


@app.get("/folders", response_model=FoldersResponse)
def folders(user_id: Optional[str] = Query(None, alias="userId", description="사용자 ID")):
    """user 가 만들었거나 참여 중인 폴더"""
    try:
        return get_user_folders(user_id)
    except ContentEngineError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Folders error: {e}")
        raise HTTPException(status_code=500, detail=f"폴더 조회 실패: {str(e)}")


@app.post("/preferences", response_model=PreferenceResponse)
def preferences(request: PreferenceRequest, response: Response):
    """선호도 저장 (기존 값과 합치고 중복 제거). 새로 만들면 201."""
    try:
        result = save_preferences(request.userId, request.intents, request.themes)
        response.status_code = 201 if result["created"] else 200
        return result
    except ContentEngineError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Preferences error: {e}")
        raise HTTPException(status_code=500, detail=f"선호도 저장 실패: {str(e)}")


@app.get("/subjects/{subject_id}/timeline", response_model=TimelineResponse)
def subject_timeline(subject_id: str):
    """Subject 의 Set 들을 recommendedOrder → id 순으로"""
    try:
        return get_subject_timeline(subject_id)
    except ContentEngineError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"[API] Timeline error: {e}")
        raise HTTPException(status_code=500, detail=f"타임라인 조회 실패: {str(e)}")
