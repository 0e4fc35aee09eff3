"""Allow running dind-setup as a module with python -m dind_setup."""

from .cli import main

if __name__ == "__main__":
    import sys

    sys.exit(main())
