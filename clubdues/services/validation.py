"""
services/validation.py

회비 입력값 검증/정규화 공통 함수 모음.

- 금액(amount)   : Decimal로 변환, 음수/NaN/무한대/bool 거부,
                   소수 3자리 이상 / 정수부 10자리 초과 거부 (반올림하지 않음)
- 청구 월         : 1 ~ 12 정수만 허용, 중복 제거 후 정렬
- 통화 코드       : 공백 제거 후 대문자 3글자
- 연도           : 1900 ~ 9999
- 마감일(due)     : date 또는 'YYYY-MM-DD' 문자열

형식이 잘못되면 ValidationError 발생.

"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable
import re

from clubdues.core.exceptions import ValidationError


_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

# Numeric(12, 2) 컬럼: 소수 2자리, 정수부 10자리까지
AMOUNT_MAX_PLACES = 2
AMOUNT_MAX_DIGITS = 12


def parse_amount(value, *, allow_zero: bool = True) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number")

    if not amount.is_finite():
        raise ValidationError("amount must be a number")
    if amount < 0:
        raise ValidationError("amount must not be negative")
    if amount >= Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_MAX_PLACES):
        raise ValidationError("amount is too large")
    # "10.50" 은 허용, "10.005" 는 반올림 없이 거부
    if amount != amount.quantize(Decimal(1).scaleb(-AMOUNT_MAX_PLACES)):
        raise ValidationError("amount must have at most 2 decimal places")
    if amount == 0 and not allow_zero:
        raise ValidationError("amount must be greater than 0")
    return amount


def normalize_months(months: Iterable[int]) -> list[int]:
    result = set()
    for m in months:
        if isinstance(m, bool) or not isinstance(m, int):
            raise ValidationError("months must be integers between 1 and 12")
        if m < 1 or m > 12:
            raise ValidationError("month must be between 1 and 12")
        result.add(m)
    return sorted(result)


def normalize_currency(currency: str) -> str:
    code = (currency or "").strip().upper()
    if not _CURRENCY_RE.match(code):
        raise ValidationError("currency must be a 3-letter code")
    return code


def validate_year(year: int) -> int:
    if isinstance(year, bool) or not isinstance(year, int) or year < 1900 or year > 9999:
        raise ValidationError("year must be between 1900 and 9999")
    return year


def parse_due_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError("due date must be in 'YYYY-MM-DD' format")
