"""CLI de devbox (typer)."""
