"""Module entrypoint for ``python -m termedit``."""

from .cli import main


if __name__ == "__main__":
    main()
