"""
Módulo Network - Detección de conectividad de salida

Hace hasta N peticiones HTTP a un destino de sondeo; cualquier respuesta
(incluso 4xx/5xx) significa que hubo conexión. Si todos los intentos fallan,
el pipeline termina sin error: el host puede estar legítimamente offline.
"""

import time
from enum import Enum
from typing import Callable

import requests

from devbox.core.desired.models import NetworkConfig
from devbox.core.logger import LOGGER


class Connectivity(str, Enum):
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


def check_connectivity(
    probe_target: str,
    attempts: int = 3,
    timeout_per_attempt: float = 5.0,
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Connectivity:
    """
    Verifica conectividad de salida

    Args:
        probe_target: URL a sondear
        attempts: Número máximo de intentos
        timeout_per_attempt: Timeout de cada intento en segundos
        delay: Espera entre intentos fallidos
        sleep: Función de espera (inyectable en tests)

    Returns:
        REACHABLE en el primer éxito; UNREACHABLE solo tras agotar los intentos
    """
    for attempt in range(1, attempts + 1):
        try:
            requests.head(probe_target, timeout=timeout_per_attempt, allow_redirects=True)
            LOGGER.info("Conexión de red detectada (%s, intento %d/%d)", probe_target, attempt, attempts)
            return Connectivity.REACHABLE
        except requests.exceptions.RequestException as e:
            LOGGER.debug("Intento %d/%d contra %s falló: %s", attempt, attempts, probe_target, e)
        if attempt < attempts and delay > 0:
            sleep(delay)
    LOGGER.warning("Sin conexión de red: no se pudo alcanzar %s", probe_target)
    return Connectivity.UNREACHABLE


class NetworkGate:
    """Compuerta de red para las etapas que la necesitan"""

    def __init__(self, config: NetworkConfig, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.sleep = sleep

    def check(self) -> Connectivity:
        return check_connectivity(
            self.config.probe_url,
            attempts=self.config.attempts,
            timeout_per_attempt=self.config.timeout,
            delay=self.config.delay,
            sleep=self.sleep,
        )

    def is_open(self) -> bool:
        return self.check() == Connectivity.REACHABLE
