"""Run the companion CLI: python -m companion"""

import sys

from .interface.cli import main

sys.exit(main())
