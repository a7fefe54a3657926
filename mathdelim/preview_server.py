#!/usr/bin/env python3
"""
Chat Math Preview Server
HTTP endpoints for normalizing chat text, with a WebSocket that pushes
the rendered HTML to a KaTeX page for live preview
"""

import argparse
import asyncio
import json
import logging
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from threading import Lock, Thread
from typing import Optional

import websockets

from mathdelim.latex_processor import LaTeXProcessor
from mathdelim.log import setup_logging
from mathdelim.markdown_processor import MarkdownProcessor

DEFAULT_LOG_FILE = Path.home() / '.cache' / 'mathdelim' / 'preview.log'

logger = logging.getLogger('mathdelim.preview')


class PreviewServer:
    def __init__(self, port=8765, debounce_delay=0.3, ws_port=None):
        logger.info(f"Initializing PreviewServer on port {port}")
        self.port = port
        self.ws_port = ws_port or port + 1
        self.current = {'html': '', 'normalized': ''}
        self.clients = set()
        self.loop: Optional[asyncio.AbstractEventLoop] = None

        self.latex_processor = LaTeXProcessor()
        self.processor = MarkdownProcessor(self.latex_processor)

        # Debouncing state
        self._debounce_task = None
        self._debounce_delay = debounce_delay
        self._pending_update = None
        self._update_lock = Lock()

        # Performance monitoring
        self._update_count = 0
        self._total_processing_time = 0.0

    async def websocket_handler(self, websocket):
        """Handle WebSocket connections"""
        logger.info(f"New WebSocket connection from {websocket.remote_address}")
        self.clients.add(websocket)
        try:
            # Send current content immediately
            if self.current['html']:
                await websocket.send(json.dumps(self.current))

            # Keep connection open
            await websocket.wait_closed()
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            logger.info(f"WebSocket connection closed from {websocket.remote_address}")
            self.clients.discard(websocket)

    async def broadcast_update(self, message):
        """Send update to all connected clients"""
        logger.debug(f"Broadcasting update to {len(self.clients)} clients ({len(message['html'])} bytes)")
        self.current = message
        if not self.clients:
            return

        message_str = json.dumps(message)
        clients = list(self.clients)
        results = await asyncio.gather(
            *[client.send(message_str) for client in clients],
            return_exceptions=True
        )
        for client, result in zip(clients, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to send to client {client.remote_address}: {result}")

    def normalize(self, content):
        """Normalize math delimiters only"""
        return self.latex_processor.normalize(content)

    def process_message(self, content):
        """Normalize and render a chat message, tracking processing time"""
        start_time = time.time()
        logger.debug(f"Processing message: {len(content)} bytes")

        normalized = self.latex_processor.normalize(content)
        html = self.processor.convert(normalized, normalize=False)

        processing_time = time.time() - start_time
        self._total_processing_time += processing_time
        self._update_count += 1

        logger.info(f"Message processed in {processing_time:.3f}s ({len(html)} bytes HTML)")
        return {'html': html, 'normalized': normalized}

    async def queue_update(self, content):
        """Queue an update with debouncing"""
        logger.debug(f"Queuing update: {len(content)} bytes")
        with self._update_lock:
            self._pending_update = content

            # Cancel existing debounce task
            if self._debounce_task and not self._debounce_task.done():
                logger.debug("Cancelling previous debounce task")
                self._debounce_task.cancel()

            self._debounce_task = asyncio.create_task(self._debounced_update())

    async def _debounced_update(self):
        """Execute update after debounce delay"""
        try:
            await asyncio.sleep(self._debounce_delay)

            with self._update_lock:
                content = self._pending_update
                self._pending_update = None

            if content is not None:
                logger.info("Executing debounced update")
                await self.broadcast_update(self.process_message(content))
        except asyncio.CancelledError:
            logger.debug("Debounce task cancelled")
        except Exception as e:
            logger.error(f"Error in debounced update: {e}", exc_info=True)

    def get_stats(self):
        """Get performance statistics"""
        avg_time = (self._total_processing_time / self._update_count) if self._update_count > 0 else 0
        return {
            'updates': self._update_count,
            'avg_processing_time_ms': avg_time * 1000,
            'total_time_s': self._total_processing_time,
            'cache_hits': self.processor.cache_hits,
            'clients': len(self.clients),
        }

    def get_template_html(self):
        """Get HTML template"""
        return TEMPLATE_HTML.replace('__WS_PORT__', str(self.ws_port))


TEMPLATE_HTML = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Chat Math Preview</title>
    <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/katex@0.16.11/dist/katex.min.css">
    <script defer src="https://cdn.jsdelivr.net/npm/katex@0.16.11/dist/katex.min.js"></script>
    <script defer src="https://cdn.jsdelivr.net/npm/katex@0.16.11/dist/contrib/auto-render.min.js"></script>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 900px;
            margin: 0 auto;
            padding: 20px;
        }
        code { background: #f6f8fa; padding: 0.2em 0.4em; border-radius: 3px; }
        pre { background: #f6f8fa; padding: 16px; border-radius: 6px; overflow-x: auto; }
        table { border-collapse: collapse; }
        th, td { border: 1px solid #dfe2e5; padding: 6px 12px; }
        .status { position: fixed; top: 10px; right: 10px; font-size: 12px; color: #6a737d; }
    </style>
</head>
<body>
    <div class="status" id="status">Connecting</div>
    <div id="content"></div>

    <script>
        function render(message) {
            const content = document.getElementById('content');
            content.innerHTML = message.html;
            if (window.renderMathInElement) {
                renderMathInElement(content, {
                    delimiters: [
                        {left: '$$', right: '$$', display: true},
                        {left: '$', right: '$', display: false}
                    ],
                    throwOnError: false
                });
            }
        }

        function connect() {
            const ws = new WebSocket('ws://localhost:__WS_PORT__');
            const status = document.getElementById('status');

            ws.onopen = function() { status.textContent = 'Connected'; };
            ws.onmessage = function(event) { render(JSON.parse(event.data)); };
            ws.onclose = function() {
                status.textContent = 'Disconnected';
                setTimeout(connect, 2000);
            };
        }

        connect();
    </script>
</body>
</html>"""


class RequestHandler(BaseHTTPRequestHandler):
    server_instance: Optional[PreviewServer] = None

    def log_message(self, format, *args):
        """Custom logging to use our logger"""
        logger.debug(f"HTTP {format % args}")

    def _send_json(self, status, payload):
        body = json.dumps(payload, indent=2).encode()
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json(self):
        content_length = int(self.headers.get('Content-Length', 0))
        post_data = self.rfile.read(content_length)
        return json.loads(post_data.decode() or '{}')

    def do_GET(self):
        """Handle GET requests"""
        if self.path == '/' or self.path == '/index.html':
            html = self.server_instance.get_template_html().encode()
            self.send_response(200)
            self.send_header('Content-Type', 'text/html')
            self.send_header('Content-Length', str(len(html)))
            self.end_headers()
            self.wfile.write(html)
        else:
            self.send_response(404)
            self.end_headers()
            logger.warning(f"404: {self.path}")

    def do_POST(self):
        """Handle POST requests for content updates"""
        logger.debug(f"POST {self.path}")
        try:
            if self.path == '/update':
                content = self._read_json().get('content', '')
                logger.info(f"Update request: {len(content)} bytes")

                # Schedule update in the asyncio loop
                if self.server_instance.loop:
                    asyncio.run_coroutine_threadsafe(
                        self.server_instance.queue_update(content),
                        self.server_instance.loop
                    )
                else:
                    logger.error("No event loop available!")
                self._send_json(200, {'status': 'ok'})
            elif self.path == '/normalize':
                content = self._read_json().get('content', '')
                normalized = self.server_instance.normalize(content)
                self._send_json(200, {'status': 'ok', 'normalized': normalized})
            elif self.path == '/stats':
                self._send_json(200, self.server_instance.get_stats())
            else:
                self.send_response(404)
                self.end_headers()
        except Exception as e:
            logger.error(f"Error processing {self.path} request: {e}", exc_info=True)
            self._send_json(500, {'status': 'error', 'message': str(e)})


async def start_websocket_server(server, ws_port):
    """Start WebSocket server"""
    server.loop = asyncio.get_running_loop()
    logger.info(f"Starting WebSocket server on port {ws_port}")

    try:
        async with websockets.serve(server.websocket_handler, 'localhost', ws_port):
            logger.info(f"WebSocket server listening on ws://localhost:{ws_port}")
            await asyncio.Future()  # run forever
    except Exception as e:
        logger.error(f"WebSocket server error: {e}", exc_info=True)
        raise


def start_http_server(server, port):
    """Start HTTP server"""
    RequestHandler.server_instance = server
    httpd = HTTPServer(('localhost', port), RequestHandler)
    logger.info(f"HTTP server started on http://localhost:{port}")
    print(f"Server started on http://localhost:{port}", flush=True)
    httpd.serve_forever()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Chat math preview server')
    parser.add_argument('--port', type=int, default=8765, help='HTTP server port')
    parser.add_argument('--ws-port', type=int, default=None, help='WebSocket server port (default: port + 1)')
    parser.add_argument('--log-file', type=str, default=str(DEFAULT_LOG_FILE), help='Log file path')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    ws_port = args.ws_port or args.port + 1
    setup_logging(args.log_file, logging.DEBUG if args.debug else logging.INFO)

    logger.info("=" * 60)
    logger.info("Starting Chat Math Preview Server")
    logger.info(f"HTTP port: {args.port}, WebSocket port: {ws_port}")
    logger.info(f"Log file: {args.log_file}")
    logger.info("=" * 60)

    server = PreviewServer(port=args.port, ws_port=ws_port)

    # Start HTTP server in a thread
    http_thread = Thread(target=start_http_server, args=(server, args.port), daemon=True)
    http_thread.start()

    try:
        asyncio.run(start_websocket_server(server, ws_port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        print("\nServer stopped", flush=True)
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        print(f"Error: {e}", flush=True)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
