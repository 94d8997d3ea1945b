import sys

from hddgen.cli import main

sys.exit(main())
