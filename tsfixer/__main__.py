import sys

from tsfixer.cli import main

sys.exit(main())
