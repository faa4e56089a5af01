# revenda/usecases/caixa.py
"""
UC: Caixa (livro de lançamentos em regime de caixa).

Lançamentos são imutáveis: só existem inclusão, exclusão individual e a
limpeza total (irreversível). Os agregados são sempre recalculados a
partir das linhas atuais.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Callable, List, Optional

from revenda.domain.errors import NotFoundError, ValidationError
from revenda.domain.formulas import LedgerSummary, summarize_ledger, to_decimal
from revenda.domain.models import Transaction, TransactionKind
from revenda.domain.policies import now_ms
from revenda.infra.db import UnitOfWork
from revenda.infra.logger import log_caixa, log_system_event
from revenda.infra.repositories import TransacaoRepo
from revenda.infra.subscriptions import TRANSACOES, ChangeFeed


class CaixaService:
    def __init__(
        self,
        transacoes: TransacaoRepo,
        feed: Optional[ChangeFeed] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.transacoes = transacoes
        self.feed = feed
        self.clock = clock
        if feed is not None:
            feed.register(TRANSACOES, self.transacoes.list_all)

    @property
    def db_path(self) -> str:
        return self.transacoes.db_path

    def append(self, tx: Transaction) -> Transaction:
        if not isinstance(tx.kind, TransactionKind):
            raise ValidationError(f"tipo de lançamento inválido: {tx.kind!r}", field="kind")
        if not (tx.description or "").strip():
            raise ValidationError("Descrição do lançamento é obrigatória", field="description")
        if tx.cost is not None and tx.kind is not TransactionKind.SALE:
            raise ValidationError("Custo só é registrado em lançamentos de venda", field="cost")
        new = replace(
            tx,
            id=tx.id or str(uuid.uuid4()),
            amount=to_decimal(tx.amount),
            date=tx.date if tx.date is not None else self.clock(),
        )
        with UnitOfWork(self.db_path, self.feed) as uow:
            self.transacoes.insert(new, uow.conn)
            uow.touch(TRANSACOES)
        log_caixa("append", new.kind.value, new.amount, id=new.id)
        return new

    def delete(self, id_: str) -> None:
        with UnitOfWork(self.db_path, self.feed) as uow:
            if self.transacoes.delete(id_, uow.conn) == 0:
                raise NotFoundError("Lançamento", id_)
            uow.touch(TRANSACOES)
        log_caixa("delete", "-", 0, id=id_)

    def clear_all(self) -> int:
        """Apaga todos os lançamentos. Irreversível."""
        with UnitOfWork(self.db_path, self.feed) as uow:
            removed = self.transacoes.clear(uow.conn)
            uow.touch(TRANSACOES)
        log_system_event("caixa_limpo", {"removidos": removed}, level="warning")
        return removed

    def list(self, kind: Optional[TransactionKind] = None) -> List[Transaction]:
        """Lançamentos do mais recente para o mais antigo (opcionalmente de um tipo)."""
        if kind is None:
            return self.transacoes.list_all()
        return self.transacoes.list_by_kind(kind)

    def summary(self) -> LedgerSummary:
        return summarize_ledger(self.transacoes.list_all())

    def subscribe(self, callback) -> Callable[[], None]:
        if self.feed is None:
            raise RuntimeError("CaixaService criado sem ChangeFeed")
        return self.feed.subscribe(TRANSACOES, callback)
