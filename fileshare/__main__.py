import sys

from fileshare.main import main

sys.exit(main())
