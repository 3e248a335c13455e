"""Entry point: python -m swaggen init"""

from .cli import main

if __name__ == "__main__":
    main()
