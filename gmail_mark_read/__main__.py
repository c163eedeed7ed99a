import sys

from gmail_mark_read.cli import main

sys.exit(main())
