import sys

from jsinline.cli import main

sys.exit(main())
