"""Command line entry point for dind-setup."""

import logging
import sys

from dind_setup.cli_args import parse_args
from dind_setup.config import ProvisionConfig
from dind_setup.exceptions import ProvisionError, VersionResolutionError
from dind_setup.provisioner import Provisioner, require_root

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] [%(levelname)s] [dind-setup] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Per-request lines from httpx drown out the install steps
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(args: list[str] | None = None) -> int:
    """Parse arguments, provision the image and return the exit code."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose)

    try:
        require_root()
        config = ProvisionConfig.from_args(parsed)
        provisioner = Provisioner(config)
        try:
            provisioner.run()
        finally:
            provisioner.close()
    except VersionResolutionError as e:
        # Operators need the full candidate list to fix the requested version
        print(e, file=sys.stderr)
        return e.exit_code
    except ProvisionError as e:
        logger.error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        logger.info("Provisioning interrupted by user")
        raise

    return 0


if __name__ == "__main__":
    sys.exit(main())
