"""
Local OAuth redirect receiver.

Runs a minimal FastAPI app under uvicorn in a background thread for the
duration of one installed-app authorization. Google redirects the browser to
`http://<host>:<port>/?code=...`; the handler records the code (or error) and
signals the waiting caller.
"""

import asyncio
import logging
import socket
import threading
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from core.errors import AuthenticationError

logger = logging.getLogger(__name__)


class OAuthCallbackServer:
    """
    One-shot HTTP server that captures the authorization code.
    """

    def __init__(self, host: str = "localhost", port: int = 3000):
        self.host = host
        self.port = port
        self.redirect_uri = f"http://{host}:{port}"
        self.app = FastAPI()
        self.server = None
        self.server_thread = None
        self.is_running = False
        self.code: str | None = None
        self.error: str | None = None
        self._received = threading.Event()

        self._setup_callback_route()

    def _setup_callback_route(self):
        server_instance = self

        @self.app.get("/")
        async def oauth_callback(request: Request):
            code = request.query_params.get("code")
            error = request.query_params.get("error")

            if error or not code:
                server_instance.error = error or "No authorization code received"
                logger.error(f"OAuth callback failed: {server_instance.error}")
                server_instance._received.set()
                return PlainTextResponse(f"Error: {server_instance.error}", status_code=400)

            server_instance.code = code
            logger.info("OAuth callback: received authorization code")
            server_instance._received.set()
            return PlainTextResponse("You can now safely close this window and return to the terminal.")

    def start(self) -> None:
        """
        Start serving in a background thread.

        Raises:
            AuthenticationError: If the port is taken or the server does not come up.
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind((self.host, self.port))
        except OSError as e:
            raise AuthenticationError(f"Port {self.port} is already in use on {self.host}") from e

        def run_server():
            """Run the server in a separate thread."""
            try:
                config = uvicorn.Config(
                    self.app,
                    host=self.host,
                    port=self.port,
                    log_level="warning",
                    access_log=False,
                )
                self.server = uvicorn.Server(config)
                asyncio.run(self.server.serve())
            except Exception as e:
                logger.error(f"OAuth callback server error: {e}", exc_info=True)
                self.is_running = False

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()

        # Wait for server to start
        max_wait = 3.0
        start_time = time.time()
        while time.time() - start_time < max_wait:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                if s.connect_ex((self.host, self.port)) == 0:
                    self.is_running = True
                    logger.info(f"OAuth callback server started on {self.host}:{self.port}")
                    return
            time.sleep(0.1)

        raise AuthenticationError(f"OAuth callback server on {self.host}:{self.port} did not respond within {max_wait}s")

    def wait_for_code(self, timeout: float) -> str:
        """
        Block until the redirect arrives and return the authorization code.

        Raises:
            AuthenticationError: On timeout or when Google redirected with an error.
        """
        if not self._received.wait(timeout):
            raise AuthenticationError("Authentication timeout")
        if self.error:
            raise AuthenticationError(f"Authentication failed: {self.error}")
        return self.code

    def stop(self) -> None:
        if not self.is_running:
            return
        if self.server is not None:
            self.server.should_exit = True
        if self.server_thread and self.server_thread.is_alive():
            self.server_thread.join(timeout=3.0)
        self.is_running = False
        logger.info("OAuth callback server stopped")
