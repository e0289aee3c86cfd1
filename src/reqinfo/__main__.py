"""
=============================================================================
ENTRY POINT
=============================================================================

    python -m reqinfo
    reqinfo                  (console script)

Serves every endpoint on [::]:80 (IPv4 and IPv6) until SIGINT/SIGTERM.
There are no flags: the port, backlog and everything else are fixed in
ServerConfig.

Exit status:
    0   stopped normally
    1   the listening socket could not be created, bound or put in
        listening state; the message names the failed step

=============================================================================
"""

import logging
import sys
from typing import Optional

from .config import ServerConfig
from .errors import StartupError
from .server import HTTPServer


logger = logging.getLogger("reqinfo")


def main(config: Optional[ServerConfig] = None) -> int:
    """
    Run the server.

    Args:
        config: Used by tests; the command line always runs the defaults.

    Returns:
        Process exit status.
    """
    server = HTTPServer(config)

    try:
        server.run()
    except StartupError as e:
        logger.critical(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
