# revenda/config.py
"""
Configurações globais e valores padrão do sistema de revenda.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Tuple


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("REVENDA_DB", os.path.join(os.getcwd(), "revenda.db"))

# Marcador gravado em `observation` quando um item é reservado para um cliente
RESERVATION_MARKER = "RESERVADO PARA:"

# Um dia em milissegundos (timestamps do domínio são epoch-ms)
DAY_MS = 86_400_000


def _default_installment_rules() -> List[Tuple[int, Decimal]]:
    # 1x sem juros; 2x..12x com acréscimo de 1,5% por parcela
    return [(i + 1, Decimal("0") if i == 0 else Decimal("1.5") * i) for i in range(12)]


DEFAULT_INSTALLMENT_RULES = _default_installment_rules()


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    expiration_days: int = 7                     # validade de uma proposta
    default_fee_usd: Decimal = Decimal("0")      # taxa do fornecedor (USD)
    default_spread: Decimal = Decimal("0.10")    # spread sobre o câmbio (R$)
    default_import_tax: Decimal = Decimal("0")   # imposto de importação fixo (R$)
    installment_rules: List[Tuple[int, Decimal]] = field(default_factory=_default_installment_rules)


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
