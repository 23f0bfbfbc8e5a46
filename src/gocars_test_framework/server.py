"""
Static HTTP server for browsing generated reports.
"""

import functools
import logging
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class ReportRequestHandler(SimpleHTTPRequestHandler):
    """Serve files from the report directory, logging through ``logging``."""

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def create_report_server(
    directory: Union[str, Path], host: str = "localhost", port: int = 8080
) -> ThreadingHTTPServer:
    """
    Bind an HTTP server that serves *directory*.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    d = Path(directory)
    if not d.is_dir():
        raise FileNotFoundError(f"Report directory not found: {d}")
    handler = functools.partial(ReportRequestHandler, directory=str(d.resolve()))
    return ThreadingHTTPServer((host, port), handler)


def serve_reports(directory: Union[str, Path], host: str = "localhost", port: int = 8080) -> None:
    """Serve *directory* over HTTP until interrupted."""
    server = create_report_server(directory, host, port)
    logger.info("Serving reports from %s on http://%s:%d", directory, host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Report server stopped")
    finally:
        server.server_close()
