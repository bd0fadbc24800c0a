import sys

from persistence_demo.cli import main

sys.exit(main())
