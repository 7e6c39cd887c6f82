"""Entry point for ``python -m cv_email_server``."""

from .cli import main

if __name__ == "__main__":
    main()
