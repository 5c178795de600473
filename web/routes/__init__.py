"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- operations: 연산 조회/생성/삭제
- balances: 통화별 잔액
- rates: USD 환율 캐시, 통화쌍 환율, 표시 방식
- history: 변경 이력, 삭제 복원
- currencies: 통화 레지스트리
- spreadsheet: xlsx/csv 가져오기/내보내기
"""
