"""PromptForge command-line entry point (``python -m promptforge``)."""

from __future__ import annotations

from promptforge.cli import main

if __name__ == "__main__":
    main()
