# revenda/infra/subscriptions.py
"""
Assinaturas de coleções (modelo de streaming).

Cada assinante recebe sempre a coleção completa e atual, nunca deltas:
uma vez ao assinar e novamente após cada commit que tocar a coleção.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List

from .logger import log_system_event

PRODUTOS = "produto"
SIMULACOES = "simulacao"
TRANSACOES = "transacao"

Callback = Callable[[List[Any]], None]
Loader = Callable[[], List[Any]]


class ChangeFeed:
    def __init__(self) -> None:
        self._subs: Dict[str, List[Callback]] = defaultdict(list)
        self._loaders: Dict[str, Loader] = {}

    def register(self, collection: str, loader: Loader) -> None:
        """Define como carregar a coleção completa para os assinantes."""
        self._loaders[collection] = loader

    def subscribe(self, collection: str, callback: Callback) -> Callable[[], None]:
        """Registra `callback` e devolve uma função que cancela a assinatura."""
        if collection not in self._loaders:
            raise KeyError(f"coleção sem loader registrado: {collection}")
        self._subs[collection].append(callback)
        self._deliver(collection, [callback], self._loaders[collection]())

        def unsubscribe() -> None:
            if callback in self._subs[collection]:
                self._subs[collection].remove(callback)

        return unsubscribe

    def notify(self, collections: Iterable[str]) -> None:
        """Reentrega as coleções após um commit; a escrita já é definitiva."""
        for collection in collections:
            subs = list(self._subs.get(collection, ()))
            if not subs:
                continue
            try:
                snapshot = self._loaders[collection]()
            except Exception as e:
                log_system_event(
                    "subscriber_error",
                    {"collection": collection, "stage": "load", "error": str(e)},
                    level="error",
                )
                continue
            self._deliver(collection, subs, snapshot)

    def _deliver(self, collection: str, callbacks: List[Callback], snapshot: List[Any]) -> None:
        for cb in callbacks:
            try:
                cb(list(snapshot))
            except Exception as e:
                # a escrita já foi confirmada; falha do assinante não a desfaz
                log_system_event(
                    "subscriber_error",
                    {"collection": collection, "error": str(e)},
                    level="error",
                )
