import sys

from resolution.cli import main

sys.exit(main())
