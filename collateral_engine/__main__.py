"""Allow ``python -m collateral_engine``."""
from .cli import main

if __name__ == "__main__":
    main()
