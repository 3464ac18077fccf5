"""Module entrypoint for running LiveI18n as ``python -m livei18n``."""

from __future__ import annotations

from livei18n.cli import main


if __name__ == "__main__":
    main()
