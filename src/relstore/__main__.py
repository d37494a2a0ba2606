import sys

from relstore.cli import main

sys.exit(main())
