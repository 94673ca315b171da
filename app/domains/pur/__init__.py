# app/domains/pur/__init__.py

"""
FastAPI 애플리케이션의 'pur' 도메인 패키지입니다.

이 패키지는 PostgreSQL의 'pur' 스키마에 해당하는 데이터 모델과
관련된 비즈니스 로직 및 API 엔드포인트를 포함합니다.

'pur' 도메인은 원료(사과, 주스, 첨가물, 포장재) 구매와 구매 품목의 재고 소진 상태를 관리합니다.

주요 서브모듈:
- `models.py`: 'pur' 스키마의 테이블에 매핑되는 SQLModel 정의.
- `schemas.py`: 'pur' 스키마 데이터에 대한 Pydantic 모델 (요청 및 응답 유효성 검사).
- `crud.py`: 'pur' 스키마 테이블에 대한 비동기 CRUD 및 업무 규칙 로직.
- `routers.py`: 'pur' 스키마 데이터에 접근하기 위한 FastAPI API 엔드포인트 정의.
"""

__title__ = "Cidery Purchase Domain"
__version__ = "0.1.0"
__all__ = ["models", "schemas", "routers", "crud"]
