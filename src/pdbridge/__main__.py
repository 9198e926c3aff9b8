"""Allow `python -m pdbridge`."""

from pdbridge.cli import main

if __name__ == "__main__":
    main()
