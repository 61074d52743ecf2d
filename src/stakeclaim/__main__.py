import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import stakeclaim.constants as C
from stakeclaim.config import ConfigError, load_config, parse_accounts
from stakeclaim.logging_config import setup_logging
from stakeclaim.supervisor import supervise

log = logging.getLogger("stakeclaim.main")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="stakeclaim",
        description="A simple utility to claim vote rewards and refresh vote strength daily on WAX",
    )
    parser.add_argument("--config-file",
                        type=Path,
                        default=Path(C.DEFAULT_ACCOUNTS_FILE),
                        help="config file to read the account keys from",
                        )
    parser.add_argument("--settings",
                        type=Path,
                        help="TOML settings file replacing the packaged config.toml",
                        )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    log.info("Stakeclaim running: %s", os.getpid())

    try:
        cfg = load_config(args.settings)
        accounts = parse_accounts(args.config_file)
        asyncio.run(supervise(accounts, cfg))
    except ConfigError as e:
        log.critical("%s", e)
        return 1
    except KeyboardInterrupt:
        log.info("Stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
