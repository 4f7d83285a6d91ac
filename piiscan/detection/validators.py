"""Deterministic validators for Brazilian document numbers and contact data.

Each validator receives the raw regex match (separators included) and
returns True only when the value is plausible for its document type.
"""

import re

_NON_DIGIT_RE = re.compile(r"\D")
_NON_RG_RE = re.compile(r"[^\dxX]")

_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)

NAME_PARTICLES = frozenset({"da", "de", "do", "dos", "das"})


def digits_only(value: str) -> str:
    return _NON_DIGIT_RE.sub("", value)


def _all_same(digits: str) -> bool:
    return len(set(digits)) == 1


def is_valid_cpf(value: str) -> bool:
    """CPF: 11 digits, two mod-11 check digits over descending weights."""
    digits = digits_only(value)
    if len(digits) != 11 or _all_same(digits):
        return False
    numbers = [int(d) for d in digits]

    first = sum(n * w for n, w in zip(numbers[:9], range(10, 1, -1)))
    check1 = (first * 10) % 11 % 10
    second = sum(n * w for n, w in zip(numbers[:10], range(11, 1, -1)))
    check2 = (second * 10) % 11 % 10

    return numbers[9] == check1 and numbers[10] == check2


def _cnpj_check_digit(numbers: list[int], weights: tuple[int, ...]) -> int:
    remainder = sum(n * w for n, w in zip(numbers, weights)) % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cnpj(value: str) -> bool:
    """CNPJ: 14 digits, two mod-11 check digits with distinct weight tables."""
    digits = digits_only(value)
    if len(digits) != 14 or _all_same(digits):
        return False
    numbers = [int(d) for d in digits]

    check1 = _cnpj_check_digit(numbers[:12], _CNPJ_WEIGHTS_1)
    check2 = _cnpj_check_digit(numbers[:13], _CNPJ_WEIGHTS_2)

    return numbers[12] == check1 and numbers[13] == check2


def is_valid_rg(value: str) -> bool:
    """RG has no national checksum; only the length is bounded."""
    cleaned = _NON_RG_RE.sub("", value)
    return 7 <= len(cleaned) <= 9


def is_valid_cep(value: str) -> bool:
    digits = digits_only(value)
    return len(digits) == 8 and digits != "0" * 8


def is_valid_email(value: str) -> bool:
    at = value.find("@")
    return at > 0 and "." in value[at + 1 :]


def is_valid_phone(value: str) -> bool:
    return 10 <= len(digits_only(value)) <= 13


def is_valid_full_name(value: str) -> bool:
    """At least two capitalized tokens; lowercase particles are skipped."""
    tokens = [t for t in value.split() if t.lower() not in NAME_PARTICLES]
    if len(tokens) < 2:
        return False
    return all(len(t) >= 2 and t[0].isupper() for t in tokens)
