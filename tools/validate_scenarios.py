from __future__ import annotations
import sys
from training_core.validators import main

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
