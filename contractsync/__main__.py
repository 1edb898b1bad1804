import sys

from contractsync.cli import main

sys.exit(main())
