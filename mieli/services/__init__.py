"""Command logic kept apart from the Typer layer."""
