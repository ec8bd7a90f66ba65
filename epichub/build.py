#!/usr/bin/env python3
"""
Client build step
Copies client/index.html into client/build so the server can serve prebuilt assets
"""

import logging
import shutil
import sys
from pathlib import Path

from .config import configure_logging, load_config

logger = logging.getLogger(__name__)


def build_client(client_dir):
    """Copy index.html into the build directory and return the copied path"""
    client_dir = Path(client_dir)
    build_dir = client_dir / 'build'
    build_dir.mkdir(parents=True, exist_ok=True)

    index_src = client_dir / 'index.html'
    index_dest = build_dir / 'index.html'
    shutil.copyfile(index_src, index_dest)
    return index_dest


def main():
    settings = load_config()
    configure_logging(settings['LOG_LEVEL'])
    try:
        build_client(settings['CLIENT_DIR'])
    except FileNotFoundError as e:
        logger.error(f"❌ Client build failed: {e}")
        sys.exit(1)
    logger.info('Client build complete.')


if __name__ == '__main__':
    main()
