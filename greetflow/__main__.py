import sys

from greetflow.cli import main

if __name__ == "__main__":
    sys.exit(main())
