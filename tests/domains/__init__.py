# tests/domains/__init__.py

"""
도메인별 API 통합 테스트 패키지입니다.

- `test_shared.py`: 감사 로그
- `test_usr.py`: 인증 및 사용자 관리
- `test_ven.py`: 공급업체와 과일 품종
- `test_pur.py`: 원료 구매
- `test_prs.py`: 착즙 작업
- `test_cel.py`: 탱크와 배치 (이송, 블렌딩, 랙킹)
- `test_carb.py`: 탄산화
- `test_pkg.py`: 패키징과 케그
- `test_inv.py`: 재고와 판매 출고
- `test_rpt.py`: 원가와 보고서
"""

__title__ = "Cidery Domain Tests"
__description__ = "Categorized tests for each business domain in the cidery FastAPI application."
__version__ = "0.1.0"
__all__ = []
