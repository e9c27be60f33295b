"""Allow running as: python -m bindmirror"""

from .main import main

main()
