import sys

from csp_html.main_startup import main

sys.exit(main())
