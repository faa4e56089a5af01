# revenda/domain/errors.py
"""
Exceções do domínio.

- ValidationError:   entrada malformada ou incompleta (detectada antes de qualquer escrita)
- IllegalStateError: operação proibida no estado atual da proposta/item
- PersistenceError:  falha do armazenamento (rede, disco, bloqueio); pode ser repetida
- NotFoundError:     id sem registro correspondente
"""

from __future__ import annotations

from typing import Optional


class RevendaError(Exception):
    """Base de todas as exceções do sistema."""


class ValidationError(RevendaError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class IllegalStateError(RevendaError):
    """Carrega em `rule` o identificador da regra violada."""

    def __init__(self, message: str, rule: str):
        super().__init__(message)
        self.rule = rule


class PersistenceError(RevendaError):
    retryable = True


class NotFoundError(RevendaError):
    def __init__(self, entity: str, id_: str):
        super().__init__(f"{entity} não encontrado: {id_}")
        self.entity = entity
        self.id = id_
