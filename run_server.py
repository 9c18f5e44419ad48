"""Run the POS backend under uvicorn until interrupted."""
import signal
import sys

import uvicorn

from medshop.core.config import settings


def handle_signal(sig, frame):
    print(f"\nReceived signal {sig}, shutting down {settings.SHOP_NAME} POS...")
    sys.exit(0)


def main():
    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)
    print("=" * 50)
    print(f"  {settings.SHOP_NAME} POS on http://{settings.SERVER_HOST}:{settings.SERVER_PORT}")
    print("=" * 50)
    uvicorn.run(
        "medshop.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
