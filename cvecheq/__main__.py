"""Allow ``python -m cvecheq``."""

from cvecheq.cli import main

if __name__ == "__main__":
    main()
