"""actionturn CLI entry point."""

from actionturn.cli import app

if __name__ == "__main__":
    app()
