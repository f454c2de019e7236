import sys

from keybench.main import main

sys.exit(main())
