"""stormrender launcher.

Run with:
    python _app.py --input channel0.csv --output-dir out/
"""

from __future__ import annotations

from stormrender.app import main

if __name__ == "__main__":
    raise SystemExit(main())
