import sys

from flowery.cli import main

sys.exit(main())
