import sys

from bollettino_aria.cli import main

sys.exit(main())
