import sys

from certgen.orchestrator import main

sys.exit(main())
