from sqlgate.cli.main import app


def main() -> None:
    """Entry point for the sqlgate command."""
    app()


__all__ = ["app", "main"]
