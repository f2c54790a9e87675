from __future__ import annotations

import re


def normalize_contract_code(x) -> str:
    """
    Normalize a CFTC contract market code.

    - Convert to string, strip whitespace, uppercase
    - Remove trailing .0 left behind by numeric YAML/CSV values ("099741.0" -> "099741")
    - Leading zeros are preserved, no zfill

    Examples:
        normalize_contract_code("088691") -> "088691"
        normalize_contract_code(" 13874v ") -> "13874V"
        normalize_contract_code("12460+") -> "12460+"
    """
    s = str(x).strip().upper()
    s = re.sub(r"\.0$", "", s)
    return s


def is_valid_contract_code(code: str) -> bool:
    """Valid format: ^[A-Z0-9+]{1,20}$ (uppercase letters, digits and '+')."""
    if not isinstance(code, str):
        return False
    return bool(re.match(r"^[A-Z0-9+]{1,20}$", code))
