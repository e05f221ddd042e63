"""Allow running lognova as ``python -m lognova``."""

from lognova.cli import main

if __name__ == "__main__":
    main()
