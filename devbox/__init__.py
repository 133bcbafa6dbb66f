"""
devbox - Aprovisionador idempotente de la VM de desarrollo.

Capas:
- core: estado deseado, estado observado y decisiones (sin E/S salvo leer provision.yaml)
- providers: sondeos y acciones contra el host
- pipeline: etapas ordenadas y reporte
- cli: comandos typer
"""

__version__ = "1.0.0"
