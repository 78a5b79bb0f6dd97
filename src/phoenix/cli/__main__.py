"""Entry point for ``python -m phoenix.cli``."""

from phoenix.cli.main import main


if __name__ == "__main__":
    main()
