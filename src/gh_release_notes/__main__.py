import sys

from gh_release_notes.cli import main

sys.exit(main())
