import sys

from investor_research.main import main

sys.exit(main())
