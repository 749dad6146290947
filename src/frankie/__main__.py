import sys

from frankie.cli import main

sys.exit(main())
