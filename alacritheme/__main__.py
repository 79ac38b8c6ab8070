"""Allow ``python -m alacritheme``."""

from .cli import main

raise SystemExit(main())
