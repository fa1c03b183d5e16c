# tvcast/core/clock.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Instante atual em UTC, sem tzinfo.

    As colunas de timestamp do banco são "naive UTC"; todo código que grava ou
    compara timestamps passa por aqui (ou por um relógio injetado com a mesma
    convenção).
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
