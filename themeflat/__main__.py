"""Entry point for `python -m themeflat`."""

import sys


def main():
    from themeflat.app import run_cli
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
