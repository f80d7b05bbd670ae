from __future__ import annotations

import math
from typing import Any

def is_truthy(val: Any) -> bool:
    match val:
        case None:
            return False
        case bool(b):
            return b
        case float(num) if math.isnan(num):
            return False
        case _:
            return bool(val)

def type_name(val: Any) -> str:
    if val is None:
        return "null"

    return type(val).__name__
