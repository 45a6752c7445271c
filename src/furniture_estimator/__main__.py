"""Allow ``python -m furniture_estimator``."""

import sys

from furniture_estimator.cli import main

if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
