import sys

from scripts.ado_report.cli import main

sys.exit(main())
