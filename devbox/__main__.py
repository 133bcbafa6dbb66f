"""
Punto de entrada: python -m devbox

Misma app que el script `devbox` (devbox.cli.app).
"""

from devbox.cli.app import app

if __name__ == "__main__":
    app()
