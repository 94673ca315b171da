# tests/utils/__init__.py

"""
app.utils 순수 함수(단위 변환, 탄산화, 원가, 이름 규칙) 단위 테스트 패키지입니다.
"""
