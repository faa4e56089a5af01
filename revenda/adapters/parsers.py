"""
Utilidades de parsing para valores digitados ou lidos de planilhas.

Valores monetários chegam em formatos variados ("5,20", "1.234,56",
"R$ 4.926,00", "US$ 820.50", "0.1"). As funções deste módulo extraem o
número de forma robusta e o devolvem como ``Decimal``, sem passar por
``float``.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

_NUM_RE = re.compile(r"[-+]?\d[\d.,]*")


def parse_decimal(txt: Any) -> Optional[Decimal]:
    """Interpreta um número em formato brasileiro ou internacional.

    Regras do separador decimal:
      - com vírgula e ponto, o que aparece por último é o decimal;
      - só vírgula: vírgula decimal;
      - só pontos: um único ponto é decimal, vários são milhares.

    Exemplos:
        "5,20"        → Decimal("5.20")
        "R$ 1.234,56" → Decimal("1234.56")
        "1,234.56"    → Decimal("1234.56")
        "1.234.567"   → Decimal("1234567")
        "-14,80"      → Decimal("-14.80")

    Returns:
        O valor como ``Decimal`` ou ``None`` quando não há número.
    """
    if txt is None:
        return None
    if isinstance(txt, Decimal):
        return txt
    if isinstance(txt, (int, float)):
        return Decimal(str(txt))
    s = str(txt).strip()
    if not s:
        return None
    m = _NUM_RE.search(s.replace(" ", ""))
    if not m:
        return None
    num = m.group(0).rstrip(".,")
    if "," in num and "." in num:
        if num.rfind(",") > num.rfind("."):
            num = num.replace(".", "").replace(",", ".")
        else:
            num = num.replace(",", "")
    elif "," in num:
        num = num.replace(".", "").replace(",", ".")
    elif num.count(".") > 1:
        num = num.replace(".", "")
    try:
        return Decimal(num)
    except InvalidOperation:
        return None


def parse_bool(val: Any) -> Optional[bool]:
    """Converte "sim"/"não", "1"/"0", "true"/"false" em bool (ou None)."""
    if val is None:
        return None
    if isinstance(val, bool):
        return val
    s = str(val).strip().lower()
    if s in {"1", "true", "t", "sim", "s", "y", "yes", "x"}:
        return True
    if s in {"0", "false", "f", "nao", "não", "n", "no", ""}:
        return False
    return None


def parse_int(val: Any) -> Optional[int]:
    """Inteiro a partir de "87", "87%", "87.0"; None quando vazio."""
    d = parse_decimal(val)
    return None if d is None else int(d)
