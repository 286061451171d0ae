"""Module entry point: ``python -m btcperf``."""
import sys

from btcperf.app import main

if __name__ == "__main__":
    sys.exit(main())
