import sys

from .data_generator import main

sys.exit(main())
