import sys

from histdb_import.histdb import main

sys.exit(main())
