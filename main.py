import sys
import os

# Inject the load-harness directory into sys.path
# This ensures the simulator and reporting packages are resolvable without installation.
sys.path.append(os.path.join(os.path.dirname(__file__), "load-harness"))

from simulator.cli import main

if __name__ == "__main__":
    sys.exit(main())
