import sys

from desktop_bundler.cli import main

sys.exit(main())
