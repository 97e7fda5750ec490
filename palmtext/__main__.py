import sys

from palmtext.cli import main

sys.exit(main())
