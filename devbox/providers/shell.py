"""
Ejecución de comandos del sistema.

Los providers nunca llaman a subprocess directamente: usan run_command
(o un sustituto con la misma firma inyectado en tests).
"""

import os
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from devbox.core.logger import LOGGER

CommandResult = Tuple[bool, str, str]
Runner = Callable[..., CommandResult]


def run_command(
    command: List[str],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = 30,
    env: Optional[Dict[str, str]] = None,
    stdin_path: Optional[Path] = None,
) -> CommandResult:
    """
    Ejecuta un comando del sistema de forma segura

    Args:
        command: Lista con comando y argumentos (sin shell: cada argumento llega literal)
        cwd: Directorio de trabajo
        timeout: Timeout en segundos (None = sin límite)
        env: Variables de entorno adicionales (se suman a las del proceso)
        stdin_path: Archivo que se conecta a la entrada estándar

    Returns:
        Tuple (success, stdout, stderr)
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    LOGGER.debug("$ %s", " ".join(command))
    stdin = None
    if stdin_path is not None:
        try:
            stdin = open(stdin_path, "rb")
        except OSError as e:
            return False, "", f"No se pudo abrir {stdin_path}: {e}"
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            env=full_env,
            stdin=stdin,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
        stdout = result.stdout.decode("utf-8", errors="replace")
        stderr = result.stderr.decode("utf-8", errors="replace")
        return result.returncode == 0, stdout, stderr
    except subprocess.TimeoutExpired:
        return False, "", f"Timeout ({timeout}s) ejecutando: {' '.join(command)}"
    except FileNotFoundError:
        return False, "", f"Comando no encontrado: {command[0]}"
    except OSError as e:
        return False, "", f"Error ejecutando {command[0]}: {e}"
    finally:
        if stdin is not None:
            stdin.close()

