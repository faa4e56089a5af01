# revenda/adapters/gds_loader.py
"""
Loader para planilhas (XLSX) de ESTOQUE.

Essa função:
- lê a planilha usando pandas (todas as colunas como texto);
- normaliza cabeçalhos (acentos, variações, sinônimos);
- retorna uma lista de dicionários com as chaves esperadas pelo caso de uso
  de importação.

Observações:
- Não converte valores monetários: ficam como texto e são interpretados
  por `parsers.parse_decimal` na importação.
- Linhas totalmente vazias são descartadas.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import pandas as pd


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key) -> Optional[str]:
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


ALIASES = {
    "nome": "name",
    "produto": "name",
    "modelo": "name",
    "aparelho": "name",

    "memoria": "memory",
    "armazenamento": "memory",
    "capacidade": "memory",

    "cor": "color",

    "custo usd": "cost_usd",
    "valor usd": "cost_usd",
    "valor produto": "cost_usd",
    "preco usd": "cost_usd",

    "taxa": "fee_usd",
    "taxa usd": "fee_usd",
    "frete": "fee_usd",

    "cambio": "exchange_rate",
    "taxa cambio": "exchange_rate",
    "taxa de cambio": "exchange_rate",
    "cotacao": "exchange_rate",
    "dolar": "exchange_rate",

    "spread": "spread",

    "imposto": "import_tax_brl",
    "taxa imp": "import_tax_brl",
    "imposto importacao": "import_tax_brl",

    "usado": "is_used",
    "seminovo": "is_used",

    "custo brl": "total_cost_brl",
    "custo total": "total_cost_brl",
    "valor aquisicao": "total_cost_brl",
    "custo": "total_cost_brl",

    "bateria": "battery_health",
    "saude bateria": "battery_health",
    "saude da bateria": "battery_health",

    "observacao": "observation",
    "observacoes": "observation",
    "obs": "observation",

    "encomenda": "ordered",
    "encomendado": "ordered",
    "status": "status",
}

FIELDS = (
    "name", "memory", "color", "cost_usd", "fee_usd", "exchange_rate", "spread",
    "import_tax_brl", "is_used", "total_cost_brl", "battery_health", "observation",
    "ordered", "status",
)


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = ALIASES.get(key, key.replace(" ", "_"))
    return df.rename(columns=new_cols)


# ---------------------------
# loader público (XLSX)
# ---------------------------

def load_produtos_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de ESTOQUE e retorna um dict por linha.

    Chaves (todas str | None): name, memory, color, cost_usd, fee_usd,
    exchange_rate, spread, import_tax_brl, is_used, total_cost_brl,
    battery_health, observation, ordered, status.
    Mais `linha` (int): número da linha na planilha (cabeçalho = 1).
    """
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)
    out: List[Dict[str, Any]] = []
    for pos, (_, row) in enumerate(df.iterrows()):
        rec = {k: _safe_get(row, k) for k in FIELDS}
        if any(v is not None for v in rec.values()):
            rec["linha"] = pos + 2
            out.append(rec)
    return out
