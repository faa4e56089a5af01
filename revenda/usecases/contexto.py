# revenda/usecases/contexto.py
"""
Montagem dos serviços sobre um banco SQLite.

Os serviços recebem repositórios, feed e relógio explicitamente; não há
instâncias globais. Um Contexto compartilha um único ChangeFeed para que
qualquer escrita notifique os assinantes das coleções tocadas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from revenda.config import DB_PATH
from revenda.domain.models import Settings
from revenda.domain.policies import now_ms
from revenda.infra.migrations import apply_migrations
from revenda.infra.repositories import ParamsRepo, ProdutoRepo, SimulacaoRepo, TransacaoRepo
from revenda.infra.subscriptions import ChangeFeed
from revenda.usecases.caixa import CaixaService
from revenda.usecases.estoque import EstoqueService
from revenda.usecases.registrar_venda import VendaService
from revenda.usecases.simulacoes import SimulacaoService


def load_settings(db_path: str = DB_PATH) -> Settings:
    """Parâmetros gravados no banco, com fallback para os defaults."""
    return ParamsRepo(db_path).settings()


@dataclass
class Contexto:
    db_path: str
    settings: Settings
    feed: ChangeFeed
    params: ParamsRepo
    estoque: EstoqueService
    simulacoes: SimulacaoService
    caixa: CaixaService
    vendas: VendaService


def criar_contexto(
    db_path: str = DB_PATH,
    expiration_days: Optional[int] = None,
    clock: Optional[Callable[[], int]] = None,
) -> Contexto:
    apply_migrations(db_path)
    clock = clock or now_ms
    settings = load_settings(db_path)
    days = settings.expiration_days if expiration_days is None else expiration_days

    produtos = ProdutoRepo(db_path)
    simulacoes = SimulacaoRepo(db_path)
    transacoes = TransacaoRepo(db_path)
    feed = ChangeFeed()

    return Contexto(
        db_path=db_path,
        settings=settings,
        feed=feed,
        params=ParamsRepo(db_path),
        estoque=EstoqueService(produtos, transacoes, feed, clock),
        simulacoes=SimulacaoService(simulacoes, produtos, transacoes, days, feed, clock),
        caixa=CaixaService(transacoes, feed, clock),
        vendas=VendaService(simulacoes, produtos, transacoes, days, feed, clock),
    )
