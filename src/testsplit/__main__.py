"""Allow ``python -m testsplit``."""

from testsplit.cli import main

if __name__ == "__main__":
    main()
