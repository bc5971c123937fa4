# content_engine/__init__.py

"""
캡슐 콘텐츠 탐색 / 추천 엔진 패키지 루트.

- navigation: 다음 캡슐 cascade, 선호도 기반 무작위 샘플링, 저장 여부 판단
- data: MongoDB / 메모리 저장소 (Intent → Theme → Subject → Set → Capsule, 폴더, 선호도)
- interface: FastAPI 서버가 호출하는 응답 형태의 함수들
"""
