"""
exceptions.py

회비 엔진 공통 예외 정의 파일.

서비스 계층은 실패 유형을 아래 세 가지로만 구분하여 raise 한다.

- ValidationError : 잘못된 금액 / 빈 청구 월 / 잘못된 청구 참조 등 (호출자가 수정 가능)
- NotFoundError   : 클럽 / 회원 / 청구가 존재하지 않음
- ConflictError   : 중복 생성 키 / 이중 납부 시도

설계 원칙:
- ValueError를 상속하여 기존 "except ValueError" 처리 흐름과 호환
- status_code를 예외가 직접 들고 있어 라우터는 매핑 테이블 없이 변환
- kind 값은 일괄 처리 결과(failures)에 그대로 기록

관련 파일:
- clubdues.services.*    : 예외 발생
- clubdues.routers.fees  : HTTPException 변환

"""


class DuesError(ValueError):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, **details):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(DuesError):
    kind = "validation"
    status_code = 400


class NotFoundError(DuesError):
    kind = "not_found"
    status_code = 404


class ConflictError(DuesError):
    kind = "conflict"
    status_code = 409
