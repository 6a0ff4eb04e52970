"""Allow running prettyconf with ``python -m prettyconf``."""

from .cli import main

main()
