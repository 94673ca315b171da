# app/domains/ven/__init__.py

"""
FastAPI 애플리케이션의 'ven' 도메인 패키지입니다.

이 패키지는 PostgreSQL의 'ven' 스키마에 해당하는 데이터 모델과
관련된 비즈니스 로직 및 API 엔드포인트를 포함합니다.

'ven' 도메인은 과수원/공급업체(Vendor), 과일 품종(FruitVariety) 및 업체별 취급 품종을 관리합니다.

주요 서브모듈:
- `models.py`: 'ven' 스키마의 테이블에 매핑되는 SQLModel 정의.
- `schemas.py`: 'ven' 스키마 데이터에 대한 Pydantic 모델 (요청 및 응답 유효성 검사).
- `crud.py`: 'ven' 스키마 테이블에 대한 비동기 CRUD 및 업무 규칙 로직.
- `routers.py`: 'ven' 스키마 데이터에 접근하기 위한 FastAPI API 엔드포인트 정의.
"""

__title__ = "Cidery Vendor Domain"
__version__ = "0.1.0"
__all__ = ["models", "schemas", "routers", "crud"]
