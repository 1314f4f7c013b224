"""Allow ``python -m tylang``."""

from .cli import main

if __name__ == "__main__":
    main()
