import sys

from unidb.main import main

sys.exit(main())
