# Imagegen Studio - image generation proxy for fal.ai models
# Copyright (C) 2025 brokechubb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

from config import FAL_KEY, SERVER_HOST, SERVER_PORT, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
from imagegen.registry import model_registry
from server.app import create_app
from utils.logging_config import setup_logging
from aiohttp import web
import logging

# Set up colored logging with optional file output
setup_logging(LOG_LEVEL, log_to_file=LOG_TO_FILE, log_file_path=LOG_FILE_PATH)

# Get logger for main module
logger = logging.getLogger(__name__)


def main():
    if not FAL_KEY:
        logger.warning("FAL_KEY is not set; generation and upload requests will fail")

    logger.info(f"Serving {len(model_registry)} models on http://{SERVER_HOST}:{SERVER_PORT}")
    web.run_app(create_app(), host=SERVER_HOST, port=SERVER_PORT, print=None)


if __name__ == "__main__":
    main()
