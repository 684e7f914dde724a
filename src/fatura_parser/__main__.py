import sys

from fatura_parser.cli import main

sys.exit(main())
