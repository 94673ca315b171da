# tests/__init__.py

"""
사이더리 생산 관리 API의 테스트 스위트 패키지입니다.

주요 구성:
- `domains/`: 각 비즈니스 도메인(shared, usr, ven, pur, prs, cel, carb, pkg, inv, rpt)의 API 통합 테스트.
- `utils/`: 단위 변환, 탄산화, 원가, 이름 규칙 등 순수 함수 단위 테스트.
- `conftest.py`: 테스트 DB 세션, 사용자/클라이언트 픽스처 등 공용 fixtures.
"""

__title__ = "Cidery API Tests"
__description__ = "Test suite for the cidery production FastAPI application."
__version__ = "0.1.0"
__all__ = []
