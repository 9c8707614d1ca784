#!/usr/bin/env python3
"""
Run Pipeline Script
===================
Runs the racestats pipeline from a source checkout without installing it.

Usage:
    python scripts/run_pipeline.py ~~/stor/kartlytics/out
    python scripts/run_pipeline.py -w ~~/stor/kartlytics/out video1.mov video2.mov
    python scripts/run_pipeline.py --dry-run ~~/stor/kartlytics/out
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from racestats.cli import main


if __name__ == "__main__":
    sys.exit(main())
