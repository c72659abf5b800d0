import sys

from avatar_compositor.presentation.cli import main

sys.exit(main())
