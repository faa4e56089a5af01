# revenda/infra/db.py
"""
Utilidades de conexão SQLite e unidade de trabalho.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from revenda.domain.errors import PersistenceError


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    - erros do sqlite3 convertidos em PersistenceError
    """
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as e:
        raise PersistenceError(f"não foi possível abrir {db_path}: {e}") from e
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise PersistenceError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def session(db_path: str, conn: Optional[sqlite3.Connection] = None) -> Iterator[sqlite3.Connection]:
    """Reaproveita a conexão de uma unidade de trabalho ou abre uma própria."""
    if conn is not None:
        yield conn
        return
    with connect(db_path) as c:
        yield c


class UnitOfWork:
    """
    Agrupa várias escritas numa única transação SQLite.

    Uso:
        with UnitOfWork(db_path, feed) as uow:
            repo_a.insert(x, uow.conn); uow.touch("produto")
            repo_b.delete(y, uow.conn); uow.touch("transacao")

    Tudo é confirmado junto ao sair do bloco; qualquer exceção desfaz
    todas as escritas. Só depois do commit os assinantes das coleções
    tocadas são notificados.
    """

    def __init__(self, db_path: str, feed=None):
        self.db_path = db_path
        self.feed = feed
        self.conn: Optional[sqlite3.Connection] = None
        self._cm = None
        self._touched: Set[str] = set()

    def touch(self, *collections: str) -> None:
        self._touched.update(collections)

    def __enter__(self) -> "UnitOfWork":
        self._cm = connect(self.db_path)
        self.conn = self._cm.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self._cm.__exit__(exc_type, exc, tb)
        finally:
            self.conn = None
            self._cm = None
        if exc_type is None and self.feed is not None and self._touched:
            self.feed.notify(sorted(self._touched))
        self._touched = set()
        return False
