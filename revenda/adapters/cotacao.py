# revenda/adapters/cotacao.py
"""
Fonte de cotação USD-BRL.

A cotação é só uma entrada da calculadora: falhas de rede ou respostas
inesperadas devolvem None (e ficam no log), nunca uma exceção.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional

import requests

from revenda.infra.logger import log_system_event

AWESOMEAPI_URL = "https://economia.awesomeapi.com.br/last/USD-BRL"
AWESOMEAPI_SOURCE = "AwesomeAPI (Mercado em Tempo Real)"
TIMEOUT = 10


@dataclass(frozen=True)
class CotacaoResult:
    rate: Decimal
    source: str


class AwesomeApiSource:
    """Cotação comercial de compra (`bid`) publicada pela AwesomeAPI."""

    def __init__(self, url: str = AWESOMEAPI_URL, timeout: float = TIMEOUT):
        self.url = url
        self.timeout = timeout

    def __call__(self) -> Optional[CotacaoResult]:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            rate = Decimal(str(data["USDBRL"]["bid"]))
        except requests.RequestException as e:
            log_system_event("cotacao_error", {"url": self.url, "error": str(e)}, level="warning")
            return None
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            log_system_event("cotacao_invalid_response", {"url": self.url, "error": repr(e)}, level="warning")
            return None
        if rate <= 0:
            log_system_event("cotacao_invalid_response", {"url": self.url, "rate": str(rate)}, level="warning")
            return None
        log_system_event("cotacao_ok", {"rate": str(rate), "source": AWESOMEAPI_SOURCE})
        return CotacaoResult(rate=rate, source=AWESOMEAPI_SOURCE)


CotacaoSource = Callable[[], Optional[CotacaoResult]]


def fetch_current_exchange_rate(sources: Optional[Iterable[CotacaoSource]] = None) -> Optional[CotacaoResult]:
    """Primeira cotação válida entre as fontes, na ordem dada."""
    for source in sources if sources is not None else (AwesomeApiSource(),):
        result = source()
        if result is not None:
            return result
    return None
