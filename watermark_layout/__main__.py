import sys

from watermark_layout.cli import main

sys.exit(main())
