import sys

from order_sourcing.cli import main

if __name__ == "__main__":
    sys.exit(main())
