"""``tutorial-stack`` command line (Typer + Rich)."""
