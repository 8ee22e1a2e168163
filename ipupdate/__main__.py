import sys

from ipupdate.cli import main

sys.exit(main())
