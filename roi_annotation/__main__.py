import sys

from roi_annotation.cli import main

sys.exit(main())
