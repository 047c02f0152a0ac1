"""Entry point: delegates to CLI app (one module per command)."""

from rich.traceback import install

from entra_auth.cli import app


def main() -> None:
    install(show_locals=False, max_frames=5, word_wrap=True)
    app()


if __name__ == "__main__":
    main()
