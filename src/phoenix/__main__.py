"""Main entry point dispatcher for phoenix commands."""

import sys


def main():
    """Dispatch to appropriate submodule based on command."""
    print("Use 'python -m phoenix.provisioner' to provision all configured containers")
    print("Use 'python -m phoenix.cli' for the command-line interface")
    sys.exit(1)


if __name__ == "__main__":
    main()
