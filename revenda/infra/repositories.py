# revenda/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- ParamsRepo
- ProdutoRepo
- SimulacaoRepo
- TransacaoRepo

Todo método aceita `conn` opcional: quando informado, a operação
participa da transação de uma UnitOfWork; caso contrário abre e
confirma sua própria conexão.
"""

from __future__ import annotations

import sqlite3
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from revenda.config import DEFAULTS
from revenda.domain.models import (
    InstallmentRule,
    ProductItem,
    ProductStatus,
    Proposal,
    ProposalOrigin,
    ProposalStatus,
    Settings,
    TradeIn,
    Transaction,
    TransactionKind,
)
from .db import session


Conn = Optional[sqlite3.Connection]


# -------------------------
# Helpers
# -------------------------

def _txt(v: Optional[Decimal]) -> Optional[str]:
    return None if v is None else str(v)


def _dec(v: Any) -> Optional[Decimal]:
    if v is None or v == "":
        return None
    try:
        return Decimal(str(v))
    except InvalidOperation:
        return None


def _dec0(v: Any) -> Decimal:
    d = _dec(v)
    return d if d is not None else Decimal("0")


def _rows(cur) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


# -------------------------
# Params
# -------------------------

def format_installment_rules(rules: Iterable[Tuple[int, Any]]) -> str:
    """[(1, 0), (2, 1.5)] -> '1:0;2:1.5'"""
    return ";".join(f"{int(n)}:{r}" for n, r in rules)


def parse_installment_rules(raw: str) -> List[InstallmentRule]:
    """'1:0;2:1.5' -> [InstallmentRule(1, 0), InstallmentRule(2, 1.5)]"""
    out: List[InstallmentRule] = []
    for chunk in (raw or "").replace(",", ";").split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        n, _, rate = chunk.partition(":")
        out.append(InstallmentRule(installments=int(n), rate=Decimal(rate.strip() or "0")))
    return sorted(out, key=lambda r: r.installments)


class ParamsRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        with session(self.db_path) as c:
            c.executemany(
                """
                INSERT INTO params (chave, valor)
                VALUES (?, ?)
                ON CONFLICT(chave) DO UPDATE SET valor=excluded.valor
                """,
                list(items),
            )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with session(self.db_path) as c:
            row = c.execute("SELECT valor FROM params WHERE chave = ?", (key,)).fetchone()
            return row[0] if row else default

    def get_decimal(self, key: str, default: Decimal) -> Decimal:
        d = _dec(self.get(key, None))
        return default if d is None else d

    def get_int(self, key: str, default: int) -> int:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return int(float(v))
        except ValueError:
            return default

    def settings(self) -> Settings:
        """Parâmetros efetivos, com fallback para os defaults."""
        raw_rules = self.get("installment_rules", None)
        if raw_rules:
            rules = parse_installment_rules(raw_rules)
        else:
            rules = [InstallmentRule(n, r) for n, r in DEFAULTS.installment_rules]
        return Settings(
            expiration_days=self.get_int("expiration_days", DEFAULTS.expiration_days),
            default_fee_usd=self.get_decimal("default_fee_usd", DEFAULTS.default_fee_usd),
            default_spread=self.get_decimal("default_spread", DEFAULTS.default_spread),
            default_import_tax=self.get_decimal("default_import_tax", DEFAULTS.default_import_tax),
            installment_rules=tuple(rules),
        )


# -------------------------
# Produto
# -------------------------

_PRODUTO_COLS = (
    "id, name, memory, color, cost_usd, fee_usd, exchange_rate, spread, import_tax_brl, "
    "total_cost_brl, created_at, is_used, battery_health, observation, status"
)


def _produto_params(item: ProductItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "memory": item.memory,
        "color": item.color,
        "cost_usd": _txt(item.cost_usd),
        "fee_usd": _txt(item.fee_usd),
        "exchange_rate": _txt(item.exchange_rate),
        "spread": _txt(item.spread),
        "import_tax_brl": _txt(item.import_tax_brl),
        "total_cost_brl": _txt(item.total_cost_brl),
        "created_at": item.created_at,
        "is_used": 1 if item.is_used else 0,
        "battery_health": item.battery_health,
        "observation": item.observation,
        "status": item.status.value,
    }


def _produto_from_row(r: Dict[str, Any]) -> ProductItem:
    return ProductItem(
        id=r["id"],
        name=r["name"],
        memory=r["memory"],
        color=r["color"],
        cost_usd=_dec0(r["cost_usd"]),
        fee_usd=_dec0(r["fee_usd"]),
        exchange_rate=_dec0(r["exchange_rate"]),
        spread=_dec0(r["spread"]),
        import_tax_brl=_dec0(r["import_tax_brl"]),
        total_cost_brl=_dec0(r["total_cost_brl"]),
        created_at=r["created_at"],
        is_used=bool(r["is_used"]),
        battery_health=r["battery_health"],
        observation=r["observation"],
        # itens antigos sem status contam como estoque
        status=ProductStatus(r["status"] or ProductStatus.IN_STOCK.value),
    )


class ProdutoRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def insert(self, item: ProductItem, conn: Conn = None) -> None:
        with session(self.db_path, conn) as c:
            c.execute(
                f"""
                INSERT INTO produto ({_PRODUTO_COLS})
                VALUES
                    (:id, :name, :memory, :color, :cost_usd, :fee_usd, :exchange_rate, :spread,
                     :import_tax_brl, :total_cost_brl, :created_at, :is_used, :battery_health,
                     :observation, :status)
                """,
                _produto_params(item),
            )

    def update(self, item: ProductItem, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            cur = c.execute(
                """
                UPDATE produto SET
                    name=:name, memory=:memory, color=:color,
                    cost_usd=:cost_usd, fee_usd=:fee_usd, exchange_rate=:exchange_rate,
                    spread=:spread, import_tax_brl=:import_tax_brl, total_cost_brl=:total_cost_brl,
                    created_at=:created_at, is_used=:is_used, battery_health=:battery_health,
                    observation=:observation, status=:status
                WHERE id = :id
                """,
                _produto_params(item),
            )
            return cur.rowcount

    def set_status(self, id_: str, status: ProductStatus, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            cur = c.execute("UPDATE produto SET status = ? WHERE id = ?", (status.value, id_))
            return cur.rowcount

    def delete(self, id_: str, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            return c.execute("DELETE FROM produto WHERE id = ?", (id_,)).rowcount

    def get(self, id_: str, conn: Conn = None) -> Optional[ProductItem]:
        with session(self.db_path, conn) as c:
            cur = c.execute(f"SELECT {_PRODUTO_COLS} FROM produto WHERE id = ?", (id_,))
            rows = _rows(cur)
            return _produto_from_row(rows[0]) if rows else None

    def list_all(self, conn: Conn = None) -> List[ProductItem]:
        with session(self.db_path, conn) as c:
            cur = c.execute(f"SELECT {_PRODUTO_COLS} FROM produto ORDER BY created_at DESC, rowid DESC")
            return [_produto_from_row(r) for r in _rows(cur)]

    def list_by_status(self, status: ProductStatus, conn: Conn = None) -> List[ProductItem]:
        with session(self.db_path, conn) as c:
            cur = c.execute(
                f"SELECT {_PRODUTO_COLS} FROM produto WHERE COALESCE(status, 'in_stock') = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (status.value,),
            )
            return [_produto_from_row(r) for r in _rows(cur)]


# -------------------------
# Simulação (proposta)
# -------------------------

_SIMULACAO_COLS = (
    "id, customer_name, customer_surname, customer_phone, product_name, product_name_only, "
    "product_memory, product_color, cost_usd, fee_usd, exchange_rate, spread, import_tax_brl, "
    "total_cost_brl, selling_price, created_at, mode, product_id, status, sold_at, "
    "trade_in_name, trade_in_value, trade_in_memory, trade_in_color, trade_in_battery"
)


def _simulacao_params(p: Proposal) -> Dict[str, Any]:
    t = p.trade_in
    return {
        "id": p.id,
        "customer_name": p.customer_name,
        "customer_surname": p.customer_surname,
        "customer_phone": p.customer_phone,
        "product_name": p.product_name,
        "product_name_only": p.product_name_only,
        "product_memory": p.product_memory,
        "product_color": p.product_color,
        "cost_usd": _txt(p.cost_usd),
        "fee_usd": _txt(p.fee_usd),
        "exchange_rate": _txt(p.exchange_rate),
        "spread": _txt(p.spread),
        "import_tax_brl": _txt(p.import_tax_brl),
        "total_cost_brl": _txt(p.total_cost_brl),
        "selling_price": _txt(p.selling_price),
        "created_at": p.created_at,
        "mode": p.mode.value,
        "product_id": p.product_id,
        "status": p.status.value,
        "sold_at": p.sold_at,
        "trade_in_name": t.name if t else None,
        "trade_in_value": _txt(t.value) if t else None,
        "trade_in_memory": t.memory if t else None,
        "trade_in_color": t.color if t else None,
        "trade_in_battery": t.battery if t else None,
    }


def _proposal_status(raw: Optional[str]) -> ProposalStatus:
    # NULL e 'saved' são rascunhos gravados por versões anteriores
    if raw in (None, "", "saved"):
        return ProposalStatus.DRAFT
    return ProposalStatus(raw)


def _simulacao_from_row(r: Dict[str, Any]) -> Proposal:
    trade_value = _dec(r["trade_in_value"])
    trade_in = None
    if r["trade_in_name"] or (trade_value is not None and trade_value > 0):
        trade_in = TradeIn(
            name=r["trade_in_name"] or "",
            value=trade_value or Decimal("0"),
            memory=r["trade_in_memory"],
            color=r["trade_in_color"],
            battery=r["trade_in_battery"],
        )
    return Proposal(
        id=r["id"],
        customer_name=r["customer_name"],
        customer_surname=r["customer_surname"] or "",
        customer_phone=r["customer_phone"] or "",
        product_name=r["product_name"],
        product_name_only=r["product_name_only"],
        product_memory=r["product_memory"],
        product_color=r["product_color"],
        cost_usd=_dec0(r["cost_usd"]),
        fee_usd=_dec0(r["fee_usd"]),
        exchange_rate=_dec0(r["exchange_rate"]),
        spread=_dec(r["spread"]),
        import_tax_brl=_dec(r["import_tax_brl"]),
        total_cost_brl=_dec0(r["total_cost_brl"]),
        selling_price=_dec0(r["selling_price"]),
        created_at=r["created_at"],
        mode=ProposalOrigin(r["mode"] or ProposalOrigin.SIMULATION.value),
        product_id=r["product_id"],
        status=_proposal_status(r["status"]),
        sold_at=r["sold_at"],
        trade_in=trade_in,
    )


class SimulacaoRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def insert(self, p: Proposal, conn: Conn = None) -> None:
        with session(self.db_path, conn) as c:
            params = _simulacao_params(p)
            cols = ", ".join(params.keys())
            vals = ", ".join(f":{k}" for k in params.keys())
            c.execute(f"INSERT INTO simulacao ({cols}) VALUES ({vals})", params)

    def update(self, p: Proposal, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            params = _simulacao_params(p)
            sets = ", ".join(f"{k}=:{k}" for k in params.keys() if k != "id")
            return c.execute(f"UPDATE simulacao SET {sets} WHERE id = :id", params).rowcount

    def mark_ordered(self, id_: str, product_id: str, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            return c.execute(
                "UPDATE simulacao SET status = ?, product_id = ? WHERE id = ?",
                (ProposalStatus.ORDERED.value, product_id, id_),
            ).rowcount

    def mark_sold(self, id_: str, sold_at: int, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            return c.execute(
                "UPDATE simulacao SET status = ?, sold_at = ? WHERE id = ?",
                (ProposalStatus.SOLD.value, sold_at, id_),
            ).rowcount

    def delete(self, id_: str, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            return c.execute("DELETE FROM simulacao WHERE id = ?", (id_,)).rowcount

    def get(self, id_: str, conn: Conn = None) -> Optional[Proposal]:
        with session(self.db_path, conn) as c:
            cur = c.execute(f"SELECT {_SIMULACAO_COLS} FROM simulacao WHERE id = ?", (id_,))
            rows = _rows(cur)
            return _simulacao_from_row(rows[0]) if rows else None

    def list_all(self, conn: Conn = None) -> List[Proposal]:
        with session(self.db_path, conn) as c:
            cur = c.execute(f"SELECT {_SIMULACAO_COLS} FROM simulacao ORDER BY created_at DESC, rowid DESC")
            return [_simulacao_from_row(r) for r in _rows(cur)]


# -------------------------
# Transação (caixa)
# -------------------------

_TRANSACAO_COLS = "id, type, description, amount, cost, date, related_id, trade_in_value"


def _transacao_from_row(r: Dict[str, Any]) -> Transaction:
    return Transaction(
        id=r["id"],
        kind=TransactionKind(r["type"]),
        description=r["description"] or "",
        amount=_dec0(r["amount"]),
        cost=_dec(r["cost"]),
        date=r["date"],
        related_id=r["related_id"],
        trade_in_value=_dec(r["trade_in_value"]),
    )


class TransacaoRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def insert(self, tx: Transaction, conn: Conn = None) -> None:
        with session(self.db_path, conn) as c:
            c.execute(
                f"""
                INSERT INTO transacao ({_TRANSACAO_COLS})
                VALUES (:id, :type, :description, :amount, :cost, :date, :related_id, :trade_in_value)
                """,
                {
                    "id": tx.id,
                    "type": tx.kind.value,
                    "description": tx.description,
                    "amount": _txt(tx.amount),
                    "cost": _txt(tx.cost),
                    "date": tx.date,
                    "related_id": tx.related_id,
                    "trade_in_value": _txt(tx.trade_in_value),
                },
            )

    def delete(self, id_: str, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            return c.execute("DELETE FROM transacao WHERE id = ?", (id_,)).rowcount

    def clear(self, conn: Conn = None) -> int:
        with session(self.db_path, conn) as c:
            return c.execute("DELETE FROM transacao").rowcount

    def get(self, id_: str, conn: Conn = None) -> Optional[Transaction]:
        with session(self.db_path, conn) as c:
            cur = c.execute(f"SELECT {_TRANSACAO_COLS} FROM transacao WHERE id = ?", (id_,))
            rows = _rows(cur)
            return _transacao_from_row(rows[0]) if rows else None

    def list_all(self, conn: Conn = None) -> List[Transaction]:
        with session(self.db_path, conn) as c:
            cur = c.execute(f"SELECT {_TRANSACAO_COLS} FROM transacao ORDER BY date DESC, rowid DESC")
            return [_transacao_from_row(r) for r in _rows(cur)]

    def list_by_kind(self, kind: TransactionKind, conn: Conn = None) -> List[Transaction]:
        with session(self.db_path, conn) as c:
            cur = c.execute(
                f"SELECT {_TRANSACAO_COLS} FROM transacao WHERE type = ? ORDER BY date DESC, rowid DESC",
                (kind.value,),
            )
            return [_transacao_from_row(r) for r in _rows(cur)]
