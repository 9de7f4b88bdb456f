"""
Límite de intentos en memoria por (identificador, ruta) con ventana deslizante.

Uso: login por IP. El estado vive en el proceso; con varios workers cada uno
lleva su propia cuenta.
"""
import math
from collections import deque
from time import monotonic
from typing import Deque, Dict, Tuple

Key = Tuple[str, str]

# Al superar este número de claves se purgan las que ya no tienen intentos vigentes
SWEEP_AT = 1024

_ATTEMPTS: Dict[Key, Deque[float]] = {}


def _sweep(now: float, window_seconds: int) -> None:
    stale = [k for k, q in _ATTEMPTS.items() if not q or now - q[-1] >= window_seconds]
    for k in stale:
        del _ATTEMPTS[k]


def check(key: Key, limit: int, window_seconds: int = 60) -> int:
    """Registra un intento para `key`.

    Devuelve 0 si el intento está permitido, o los segundos que faltan para que
    se libere un hueco en la ventana (el intento rechazado no cuenta).
    """
    now = monotonic()
    if len(_ATTEMPTS) >= SWEEP_AT:
        _sweep(now, window_seconds)
    attempts = _ATTEMPTS.setdefault(key, deque())
    while attempts and now - attempts[0] >= window_seconds:
        attempts.popleft()
    if len(attempts) >= limit:
        return max(1, math.ceil(window_seconds - (now - attempts[0])))
    attempts.append(now)
    return 0


def reset() -> None:
    _ATTEMPTS.clear()
