"""Entry point for ``python -m phoenix.provisioner``."""

import asyncio
import sys

from phoenix.errors import ProvisioningError
from phoenix.provisioner.main import run_provisioner


def main():
    """Provision every configured container."""
    try:
        sys.exit(asyncio.run(run_provisioner()))
    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\nProvisioning interrupted", file=sys.stderr)
        sys.exit(130)
    except ProvisioningError as e:
        print(f"Provisioning error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
