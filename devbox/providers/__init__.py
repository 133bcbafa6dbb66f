"""
Providers: implementación contra el host real (subprocess, filesystem, red, MySQL).

Implementan los contratos del core (StateProbe) y ejecutan las acciones
que el core decide. Todos aceptan un `run` inyectable con la firma de
shell.run_command para poder probarse sin tocar el sistema.
"""
