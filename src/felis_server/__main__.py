"""
Process entry point: bootstrap the server in the working directory and run it.
"""

import asyncio
import logging
import pathlib
import sys

from felis_server.bootstrap import download_classpath
from felis_server.felis_config import BootstrapConfig
from felis_server.felis_exceptions import FelisException
from felis_server.felis_logger import FelisLogger
from felis_server.launcher import JavaLauncher


async def run(root: pathlib.Path, logger: FelisLogger) -> int:
    config = BootstrapConfig.from_environment(root)
    classpath = await download_classpath(root, config, logger)
    return await JavaLauncher(config, logger).launch(classpath)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    logger = FelisLogger()
    try:
        exit_code = asyncio.run(run(pathlib.Path("."), logger))
    except FelisException as e:
        logger.log("Bootstrap failed", logging.ERROR, e.message)
        print(f"felis-server: {e.message}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
