from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

from bson import ObjectId
from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError
from sshtunnel import SSHTunnelForwarder

from ..errors import StoreError
from ..models.data_models import (
    Capsule,
    CapsuleMetadata,
    ContentSet,
    Folder,
    Intent,
    Subject,
    Theme,
    TimelineTask,
    UserPreference,
)
from .store import ContentStore, Entity, HierarchyLevel

logger = logging.getLogger(__name__)


# -----------------------------------------
#  환경변수 로드 (.env, CONTENT_ENGINE_ENV 로 경로 변경 가능)
# -----------------------------------------
_CURRENT_DIR = Path(__file__).resolve().parent
# data -> content_engine -> 프로젝트 루트
_PROJECT_ROOT = _CURRENT_DIR.parent.parent
_ENV_PATH = Path(os.getenv("CONTENT_ENGINE_ENV", str(_PROJECT_ROOT / ".env")))
load_dotenv(_ENV_PATH)

MONGODB_URI = os.getenv("MONGO_URI")
MONGODB_HOST = os.getenv("MONGO_HOST", "127.0.0.1")
MONGODB_PORT = int(os.getenv("MONGO_PORT", "27017"))
MONGODB_USERNAME = os.getenv("MONGO_USER")
MONGODB_PASSWORD = os.getenv("MONGO_PASSWORD")
MONGODB_AUTH_SOURCE = os.getenv("MONGO_AUTH_SOURCE", "admin")
MONGODB_DB_NAME = os.getenv("MONGO_DB", "tabs")
MONGODB_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "30000"))

# -----------------------------------------
#  SSH 터널링 설정 (MONGO_PUBLIC_IP 가 있을 때만 사용)
# -----------------------------------------
SSH_HOST = os.getenv("MONGO_PUBLIC_IP")
SSH_PORT = int(os.getenv("SSH_PORT", "22"))
SSH_USERNAME = os.getenv("SSH_USERNAME", "ubuntu")
SSH_PEM_KEY_PATH = Path(os.getenv("SSH_PEM_KEY_PATH", str(_PROJECT_ROOT / "secrets" / "mongo.pem")))

# 전역 SSH 터널 (싱글톤)
_ssh_tunnel: Optional[SSHTunnelForwarder] = None


def get_ssh_tunnel() -> SSHTunnelForwarder:
    """SSH 터널을 싱글톤으로 가져오거나 생성합니다."""
    import paramiko

    global _ssh_tunnel
    if _ssh_tunnel is None or not _ssh_tunnel.is_active:
        pkey = paramiko.RSAKey.from_private_key_file(str(SSH_PEM_KEY_PATH))

        _ssh_tunnel = SSHTunnelForwarder(
            (SSH_HOST, SSH_PORT),
            ssh_username=SSH_USERNAME,
            ssh_pkey=pkey,
            remote_bind_address=("127.0.0.1", MONGODB_PORT),
            local_bind_address=("127.0.0.1", 0),
            allow_agent=False,
            host_pkey_directories=[],
        )
        _ssh_tunnel.start()
        logger.info(f"[Store] SSH tunnel opened: {SSH_HOST} -> 127.0.0.1:{_ssh_tunnel.local_bind_port}")
    return _ssh_tunnel


def build_mongo_uri() -> str:
    if MONGODB_URI:
        return MONGODB_URI

    host, port = MONGODB_HOST, MONGODB_PORT
    if SSH_HOST:
        host, port = "127.0.0.1", get_ssh_tunnel().local_bind_port

    if MONGODB_USERNAME:
        return (
            f"mongodb://{MONGODB_USERNAME}:{MONGODB_PASSWORD}"
            f"@{host}:{port}/?authSource={MONGODB_AUTH_SOURCE}&directConnection=true"
        )
    return f"mongodb://{host}:{port}/?directConnection=true"


def _intent_values(intent_ids: Iterable[ObjectId]) -> List[Any]:
    # capsules.intent 는 문자열 배열로 저장된 문서와 ObjectId 배열 문서가 섞여 있다
    values: List[Any] = []
    for oid in intent_ids:
        values.append(oid)
        values.append(str(oid))
    return values


def _read_time(value: Any) -> Optional[float]:
    # estimatedReadTime 은 JS Number (분 단위, 소수 가능)
    if value is None:
        return None
    return float(value)


def build_match_filter(intent_ids: List[ObjectId], theme_ids: List[ObjectId]) -> Dict[str, Any]:
    return {
        "$or": [
            {"intent": {"$in": _intent_values(intent_ids)}},
            {"theme": {"$in": list(theme_ids)}},
        ]
    }


class MongoContentStore(ContentStore):
    """
    MongoDB 기반 콘텐츠 계층 + 폴더 + 선호도 조회.

    모든 PyMongoError 는 StoreError 로 감싸서 올린다 (재시도 없음).
    """

    def __init__(self, client: Optional[MongoClient] = None, db_name: Optional[str] = None):
        if client is None:
            client = MongoClient(
                build_mongo_uri(),
                serverSelectionTimeoutMS=MONGODB_TIMEOUT_MS,
                connectTimeoutMS=MONGODB_TIMEOUT_MS,
                socketTimeoutMS=MONGODB_TIMEOUT_MS,
            )

        self.client = client
        self.db = self.client[db_name or MONGODB_DB_NAME]

        # Collections
        self.col_folders = self.db["folders"]
        self.col_preferences = self.db["userpreferences"]

    def _collection(self, level: HierarchyLevel):
        return self.db[level.collection]

    @staticmethod
    def _parent_query(level: HierarchyLevel, parent_id: Optional[ObjectId]) -> Dict[str, Any]:
        # intent 는 루트라 부모 조건이 없다
        if level.parent_field is None:
            return {}
        return {level.parent_field: parent_id}

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        try:
            yield
        except PyMongoError as e:
            logger.error(f"[Store] {operation} failed: {e}")
            raise StoreError(f"Data store error during {operation}") from e

    # ------------------------------------------------------
    # Document → dataclass 변환
    # ------------------------------------------------------
    @staticmethod
    def _doc_to_capsule(doc: Dict[str, Any]) -> Capsule:
        meta = doc.get("metadata") or {}
        return Capsule(
            id=doc["_id"],
            title=doc.get("title", ""),
            set_id=doc.get("set"),
            subject_id=doc.get("subject"),
            theme_id=doc.get("theme"),
            intent_tags=[str(i) for i in doc.get("intent") or []],
            slides=list(doc.get("slides") or []),
            tags=list(doc.get("tags") or []),
            metadata=CapsuleMetadata(
                author=meta.get("author") or "Unknown",
                estimated_read_time=_read_time(meta.get("estimatedReadTime")),
                save_count=int(meta.get("saveCount") or 0),
                view_count=int(meta.get("viewCount") or 0),
            ),
            question_or_poll=doc.get("questionOrPoll"),
            created_at=doc.get("createdAt"),
        )

    @staticmethod
    def _doc_to_timeline(raw: List[Dict[str, Any]]) -> List[TimelineTask]:
        # defaultTimeline: [{name, tasks: [{set, recommendedOrder}]}] 또는 [{set, recommendedOrder}]
        tasks: List[TimelineTask] = []
        for entry in raw or []:
            items = entry.get("tasks") if "tasks" in entry else [entry]
            for t in items or []:
                if t.get("set") is not None:
                    tasks.append(TimelineTask(set_id=t["set"], recommended_order=t.get("recommendedOrder")))
        return tasks

    @classmethod
    def _doc_to_entity(cls, level: HierarchyLevel, doc: Dict[str, Any]) -> Entity:
        if level is HierarchyLevel.CAPSULE:
            return cls._doc_to_capsule(doc)
        if level is HierarchyLevel.SET:
            return ContentSet(
                id=doc["_id"],
                name=doc.get("name", ""),
                subject_id=doc.get("subject"),
                description=doc.get("description"),
                recommended_order=doc.get("recommendedOrder"),
            )
        if level is HierarchyLevel.SUBJECT:
            return Subject(
                id=doc["_id"],
                name=doc.get("name", ""),
                theme_id=doc.get("theme"),
                description=doc.get("description"),
                default_timeline=cls._doc_to_timeline(doc.get("defaultTimeline")),
            )
        if level is HierarchyLevel.THEME:
            return Theme(
                id=doc["_id"],
                name=doc.get("name", ""),
                description=doc.get("description"),
                intent_id=doc.get("intentId"),
            )
        return Intent(id=doc["_id"], name=doc.get("name", ""), description=doc.get("description"))

    @staticmethod
    def _doc_to_folder(doc: Dict[str, Any]) -> Folder:
        return Folder(
            id=doc["_id"],
            name=doc.get("name", ""),
            creator_id=doc.get("creator"),
            privacy=doc.get("privacy", "personal"),
            participant_ids=list(doc.get("participants") or []),
            capsule_ids=list(doc.get("capsules") or []),
        )

    # ------------------------------------------------------
    # Hierarchy 조회
    # ------------------------------------------------------
    def get(self, level: HierarchyLevel, entity_id: ObjectId) -> Optional[Entity]:
        with self._store_call(f"get {level.value}"):
            doc = self._collection(level).find_one({"_id": entity_id})
        return self._doc_to_entity(level, doc) if doc else None

    def first_child(
        self,
        level: HierarchyLevel,
        parent_id: Optional[ObjectId],
        after_id: Optional[ObjectId] = None,
    ) -> Optional[Entity]:
        query = self._parent_query(level, parent_id)
        if after_id is not None:
            query["_id"] = {"$gt": after_id}
        with self._store_call(f"first_child {level.value}"):
            doc = self._collection(level).find_one(query, sort=[("_id", ASCENDING)])
        return self._doc_to_entity(level, doc) if doc else None

    def children(self, level: HierarchyLevel, parent_id: Optional[ObjectId]) -> List[Entity]:
        with self._store_call(f"children {level.value}"):
            docs = list(self._collection(level).find(self._parent_query(level, parent_id)).sort("_id", ASCENDING))
        return [self._doc_to_entity(level, d) for d in docs]

    def top_saved_capsule(self) -> Optional[Capsule]:
        capsules = self.top_saved_capsules(limit=1)
        return capsules[0] if capsules else None

    def top_saved_capsules(self, limit: int, exclude_ids: Iterable[ObjectId] = ()) -> List[Capsule]:
        exclude = list(exclude_ids)
        query = {"_id": {"$nin": exclude}} if exclude else {}
        with self._store_call("top_saved_capsules"):
            cursor = (
                self._collection(HierarchyLevel.CAPSULE)
                .find(query)
                .sort([("metadata.saveCount", DESCENDING), ("_id", ASCENDING)])
                .limit(limit)
            )
            docs = list(cursor)
        return [self._doc_to_capsule(d) for d in docs]

    # ------------------------------------------------------
    # 선호도 기반 샘플링
    # ------------------------------------------------------
    def count_matching_capsules(self, intent_ids: List[ObjectId], theme_ids: List[ObjectId]) -> int:
        with self._store_call("count_matching_capsules"):
            return self._collection(HierarchyLevel.CAPSULE).count_documents(
                build_match_filter(intent_ids, theme_ids)
            )

    def sample_matching_capsules(
        self, intent_ids: List[ObjectId], theme_ids: List[ObjectId], size: int
    ) -> List[Capsule]:
        pipeline = [
            {"$match": build_match_filter(intent_ids, theme_ids)},
            {"$sample": {"size": size}},
        ]
        with self._store_call("sample_matching_capsules"):
            docs = list(self._collection(HierarchyLevel.CAPSULE).aggregate(pipeline))
        return [self._doc_to_capsule(d) for d in docs]

    # ------------------------------------------------------
    # Folder collaborator
    # ------------------------------------------------------
    def find_by_creator_containing(self, user_id: ObjectId, capsule_id: ObjectId) -> bool:
        with self._store_call("find_by_creator_containing"):
            doc = self.col_folders.find_one({"creator": user_id, "capsules": capsule_id}, projection={"_id": 1})
        return doc is not None

    def saved_capsule_ids(
        self, user_id: ObjectId, capsule_ids: Optional[Iterable[ObjectId]] = None
    ) -> Set[ObjectId]:
        query: Dict[str, Any] = {"creator": user_id}
        wanted: Optional[Set[ObjectId]] = None
        if capsule_ids is not None:
            ordered = list(dict.fromkeys(capsule_ids))
            if not ordered:
                return set()
            wanted = set(ordered)
            query["capsules"] = {"$in": ordered}

        with self._store_call("saved_capsule_ids"):
            docs = list(self.col_folders.find(query, projection={"capsules": 1}))

        saved: Set[ObjectId] = set()
        for d in docs:
            saved.update(d.get("capsules") or [])
        return saved & wanted if wanted is not None else saved

    def folders_for_user(self, user_id: ObjectId) -> List[Folder]:
        query = {"$or": [{"creator": user_id}, {"participants": user_id}]}
        with self._store_call("folders_for_user"):
            docs = list(self.col_folders.find(query).sort("_id", ASCENDING))
        return [self._doc_to_folder(d) for d in docs]

    # ------------------------------------------------------
    # UserPreference
    # ------------------------------------------------------
    def get_preference(self, user_id: ObjectId) -> Optional[UserPreference]:
        with self._store_call("get_preference"):
            doc = self.col_preferences.find_one({"userId": user_id})
        if not doc:
            return None
        return UserPreference(
            user_id=doc["userId"],
            intent_ids=list(doc.get("intents") or []),
            theme_ids=list(doc.get("themes") or []),
        )

    def save_preference(self, preference: UserPreference) -> None:
        with self._store_call("save_preference"):
            self.col_preferences.update_one(
                {"userId": preference.user_id},
                {"$set": {"intents": preference.intent_ids, "themes": preference.theme_ids}},
                upsert=True,
            )
