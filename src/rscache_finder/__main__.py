"""rs-cache-finder executable module.

Error handling lives in cli.main(); this module only serves
`python -m rscache_finder`.
"""

from __future__ import annotations

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
