"""Hash a directory from the command line.

Just run: python main.py path/to/dir
"""

import sys

from progress_hasher.cli import main

if __name__ == "__main__":
    sys.exit(main())
