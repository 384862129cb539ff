import sys

from resource_storage.cli import main

sys.exit(main())
