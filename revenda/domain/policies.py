"""
Políticas de negócio derivadas do tempo e das anotações de reserva.

Este módulo contém funções que encapsulam regras que não são
persistidas: a expiração de propostas (função pura de ``created_at``,
``expiration_days`` e ``now``) e a reserva de itens de estoque para um
cliente, registrada como texto no campo ``observation``. As funções são
usadas pelos serviços de estoque, simulações e venda.
"""

from __future__ import annotations

import time
from typing import Iterable, List, Optional

from revenda.config import DAY_MS, RESERVATION_MARKER
from .models import ProductItem, ProductStatus, Proposal


def now_ms() -> int:
    """Instante atual em milissegundos desde a época."""
    return int(time.time() * 1000)


def is_expired(created_at: Optional[int], expiration_days: int, now: int) -> bool:
    """Indica se uma proposta passou do prazo de validade.

    Regra: ``now - created_at > expiration_days * 86_400_000``.

    Não há limite mínimo ou máximo para ``expiration_days``: com ``0``
    tudo expira, exceto o que foi criado exatamente em ``now``.

    Args:
        created_at: Criação da proposta (epoch-ms). ``None`` nunca expira.
        expiration_days: Prazo configurado em dias.
        now: Instante de referência (epoch-ms).

    Returns:
        ``True`` se a proposta está expirada.
    """
    if created_at is None:
        return False
    return (int(now) - int(created_at)) > int(expiration_days) * DAY_MS


def proposal_expired(proposal: Proposal, expiration_days: int, now: int) -> bool:
    return is_expired(proposal.created_at, expiration_days, now)


def _norm(s: Optional[str]) -> str:
    return " ".join((s or "").split()).lower()


def reservation_note(customer_full_name: str) -> str:
    """Texto gravado em ``observation`` ao reservar um item, ex.: ``RESERVADO PARA: Ana Lima``."""
    return f"{RESERVATION_MARKER} {customer_full_name.strip()}"


def is_reserved(observation: Optional[str]) -> bool:
    return _norm(RESERVATION_MARKER) in _norm(observation)


def is_reserved_for(observation: Optional[str], customer_full_name: str) -> bool:
    """Verifica se a anotação reserva o item para este cliente exato."""
    if not customer_full_name or not customer_full_name.strip():
        return False
    return _norm(reservation_note(customer_full_name)) in _norm(observation)


def same_product(item: ProductItem, name: Optional[str], memory: Optional[str], color: Optional[str]) -> bool:
    """Compara nome/memória/cor ignorando caixa e espaços extras."""
    return (
        _norm(item.name) == _norm(name)
        and _norm(item.memory) == _norm(memory)
        and _norm(item.color) == _norm(color)
    )


def available_for_sale(items: Iterable[ProductItem]) -> List[ProductItem]:
    """Itens em estoque que podem ser oferecidos.

    Exclui encomendas ainda não recebidas e itens cuja ``observation``
    contém o marcador de reserva (continuam ``in_stock``, mas já têm dono).
    """
    return [
        it for it in items
        if it.status is ProductStatus.IN_STOCK and not is_reserved(it.observation)
    ]


def find_reserved_match(items: Iterable[ProductItem], proposal: Proposal) -> Optional[ProductItem]:
    """Procura o item reservado que atende uma proposta manual.

    Casa nome/memória/cor da proposta e exige que a ``observation`` do
    item reserve a unidade para o cliente da proposta. Ausência de
    correspondência é um resultado válido (``None``).
    """
    name = proposal.product_name_only or proposal.product_name
    for it in items:
        if it.status is not ProductStatus.IN_STOCK:
            continue
        if not same_product(it, name, proposal.product_memory, proposal.product_color):
            continue
        if is_reserved_for(it.observation, proposal.customer_full_name):
            return it
    return None
