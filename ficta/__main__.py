import sys

from ficta.main import main

sys.exit(main())
