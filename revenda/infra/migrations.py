# revenda/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (params, produto, simulacao, transacao)
V2: status de encomenda no produto e ciclo de vida da proposta
    (status/sold_at), além dos índices de consulta
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Parâmetros K/V
    """
    CREATE TABLE IF NOT EXISTS params (
        chave TEXT PRIMARY KEY,
        valor TEXT
    );
    """,
    # Itens de estoque (novos e seminovos); valores monetários como TEXT decimal
    """
    CREATE TABLE IF NOT EXISTS produto (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        memory TEXT NOT NULL,
        color TEXT NOT NULL,
        cost_usd TEXT,
        fee_usd TEXT,
        exchange_rate TEXT,
        spread TEXT,
        import_tax_brl TEXT,
        total_cost_brl TEXT NOT NULL,
        created_at INTEGER NOT NULL,
        is_used INTEGER DEFAULT 0,
        battery_health INTEGER,
        observation TEXT
    );
    """,
    # Simulações (propostas) salvas
    """
    CREATE TABLE IF NOT EXISTS simulacao (
        id TEXT PRIMARY KEY,
        customer_name TEXT NOT NULL,
        customer_surname TEXT,
        customer_phone TEXT,
        product_name TEXT NOT NULL,
        product_name_only TEXT,
        product_memory TEXT,
        product_color TEXT,
        cost_usd TEXT,
        fee_usd TEXT,
        exchange_rate TEXT,
        spread TEXT,
        import_tax_brl TEXT,
        total_cost_brl TEXT NOT NULL,
        selling_price TEXT NOT NULL,
        created_at INTEGER NOT NULL,
        mode TEXT,
        product_id TEXT,
        trade_in_name TEXT,
        trade_in_value TEXT,
        trade_in_memory TEXT,
        trade_in_color TEXT,
        trade_in_battery INTEGER
    );
    """,
    # Lançamentos do caixa
    """
    CREATE TABLE IF NOT EXISTS transacao (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL, -- 'STOCK_ENTRY' | 'SALE' | 'TRADE_IN_ENTRY'
        description TEXT,
        amount TEXT NOT NULL,
        cost TEXT,
        date INTEGER NOT NULL,
        related_id TEXT,
        trade_in_value TEXT
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    _ensure_column(conn, "produto", "status", "status TEXT DEFAULT 'in_stock'")
    _ensure_column(conn, "simulacao", "status", "status TEXT")
    _ensure_column(conn, "simulacao", "sold_at", "sold_at INTEGER")
    conn.executescript(
        """
        CREATE INDEX IF NOT EXISTS idx_produto_created   ON produto(created_at);
        CREATE INDEX IF NOT EXISTS idx_produto_status    ON produto(status);
        CREATE INDEX IF NOT EXISTS idx_simulacao_created ON simulacao(created_at);
        CREATE INDEX IF NOT EXISTS idx_transacao_date    ON transacao(date);
        CREATE INDEX IF NOT EXISTS idx_transacao_type    ON transacao(type);
        """
    )


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
