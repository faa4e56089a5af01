# revenda/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Valores monetários são sempre `Decimal`; timestamps são epoch em milissegundos.
- Campos com conjunto fechado de valores (status, origem, tipo de lançamento)
  são enums `str`, persistidos pelo seu valor.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")


class ProductStatus(str, Enum):
    IN_STOCK = "in_stock"
    ORDERED = "ordered"


class ProposalStatus(str, Enum):
    DRAFT = "draft"
    ORDERED = "ordered"
    SOLD = "sold"


class ProposalOrigin(str, Enum):
    FROM_STOCK = "FROM_STOCK"            # item novo do estoque
    FROM_USED_STOCK = "FROM_USED_STOCK"  # item seminovo do estoque
    SIMULATION = "SIMULATION"            # cotação manual


class TransactionKind(str, Enum):
    STOCK_ENTRY = "STOCK_ENTRY"
    SALE = "SALE"
    TRADE_IN_ENTRY = "TRADE_IN_ENTRY"


@dataclass
class ProductItem:
    """Unidade em estoque ou encomendada."""
    name: str
    memory: str
    color: str
    cost_usd: Decimal = ZERO
    fee_usd: Decimal = ZERO
    exchange_rate: Decimal = ZERO
    spread: Decimal = ZERO
    import_tax_brl: Decimal = ZERO
    total_cost_brl: Decimal = ZERO
    created_at: Optional[int] = None
    is_used: bool = False
    battery_health: Optional[int] = None   # só seminovos (0-100)
    observation: Optional[str] = None      # notas livres, ex.: reserva
    status: ProductStatus = ProductStatus.IN_STOCK
    id: Optional[str] = None

    @property
    def descricao(self) -> str:
        return " ".join(p for p in (self.name, self.memory, self.color) if p)


@dataclass
class TradeIn:
    """Aparelho recebido do cliente como parte do pagamento."""
    name: str
    value: Decimal
    memory: Optional[str] = None
    color: Optional[str] = None
    battery: Optional[int] = None


@dataclass
class Proposal:
    """Simulação (orçamento) salva para um cliente."""
    customer_name: str
    product_name: str
    total_cost_brl: Decimal
    selling_price: Decimal                 # preço cheio, antes de descontar a troca
    mode: ProposalOrigin = ProposalOrigin.SIMULATION
    customer_surname: str = ""
    customer_phone: str = ""
    product_name_only: Optional[str] = None
    product_memory: Optional[str] = None
    product_color: Optional[str] = None
    cost_usd: Decimal = ZERO
    fee_usd: Decimal = ZERO
    exchange_rate: Decimal = ZERO
    spread: Optional[Decimal] = None
    import_tax_brl: Optional[Decimal] = None
    created_at: Optional[int] = None
    product_id: Optional[str] = None
    status: ProposalStatus = ProposalStatus.DRAFT
    sold_at: Optional[int] = None
    trade_in: Optional[TradeIn] = None
    id: Optional[str] = None

    @property
    def customer_full_name(self) -> str:
        return f"{self.customer_name} {self.customer_surname}".strip()

    @property
    def trade_in_value(self) -> Decimal:
        return self.trade_in.value if self.trade_in else ZERO


@dataclass(frozen=True)
class Transaction:
    """Lançamento imutável do caixa."""
    kind: TransactionKind
    description: str
    amount: Decimal
    date: int
    cost: Optional[Decimal] = None         # só em SALE
    related_id: Optional[str] = None
    trade_in_value: Optional[Decimal] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class InstallmentRule:
    installments: int
    rate: Decimal                          # acréscimo percentual, ex.: 5.5


@dataclass(frozen=True)
class Settings:
    """Parâmetros efetivos (defaults + tabela `params`)."""
    expiration_days: int
    default_fee_usd: Decimal
    default_spread: Decimal
    default_import_tax: Decimal
    installment_rules: tuple
