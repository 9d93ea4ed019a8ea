"""
main.py — Server launcher and entry point.

Run this file to start the reservation API and open the interactive docs:

    python main.py

The API docs will open at http://127.0.0.1:8000/docs

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence. The front-desk console
is a separate streamlit app:

    streamlit run dashboard/app.py
"""

from __future__ import annotations

import argparse
import threading
import time
import webbrowser

import uvicorn


HOST = "127.0.0.1"
PORT = 8000


def _open_browser_after_startup(url: str, delay_seconds: float = 2.0) -> None:
    """Open the docs after uvicorn has had time to create the schema."""
    time.sleep(delay_seconds)
    print(f"\n  Opening API docs → {url}\n")
    webbrowser.open(url)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the hotel reservation API.")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--no-browser", action="store_true", help="Do not open the API docs.")
    parser.add_argument("--no-reload", action="store_true", help="Disable hot reload.")
    return parser.parse_args()


def main() -> None:
    """Start the reservation API server."""
    args = _parse_args()
    docs_url = f"http://{args.host}:{args.port}/docs"

    print("=" * 60)
    print("  Hotel Reservation Service")
    print("=" * 60)
    print(f"  Server   : http://{args.host}:{args.port}")
    print(f"  API docs : {docs_url}")
    print("  Console  : streamlit run dashboard/app.py")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    if not args.no_browser:
        browser_thread = threading.Thread(
            target=_open_browser_after_startup,
            args=(docs_url,),
            daemon=True,
        )
        browser_thread.start()

    # Blocks until CTRL+C
    uvicorn.run(
        "app:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
