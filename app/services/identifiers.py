"""
services/identifiers.py

이름 기반 식별자(id) 파생 함수.

Role / Group 의 id 는 요청으로 받지 않고 이름에서 파생한다.
- 공백 제거
- 발음 구별 기호(diacritics) 제거 (유니코드 NFD 분해 후 결합 문자 삭제)
- đ / Đ 는 분해되지 않으므로 d / D 로 직접 치환
- 대소문자는 유지

예) "Quản lý" -> "Quanly", "Mana ger" -> "Manager"

"""

import unicodedata

from app.core.exceptions import ValidationError


_SPECIAL = str.maketrans({"đ": "d", "Đ": "D"})


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value.translate(_SPECIAL))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def derive_id(name: str) -> str:
    derived = strip_diacritics("".join((name or "").split()))
    if not derived:
        raise ValidationError("Name must contain at least one non-space character")
    return derived
