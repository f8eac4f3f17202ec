"""just-run-it entry point.

Supports: python -m just_run_it
"""

from .app import main

if __name__ == "__main__":
    main()
