"""Launch the PhotoMeasure command line from a source checkout."""

import sys
from pathlib import Path

# Add src to path so the photomeasure package is importable without installing
sys.path.insert(0, str(Path(__file__).parent / "src"))

from photomeasure.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
