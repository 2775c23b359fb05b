import sys

from alertgrid.runner import main

sys.exit(main())
