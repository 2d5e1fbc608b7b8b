"""Allows ``python -m spectrolab``."""
from spectrolab.main import main

if __name__ == "__main__":
    main()
