import argparse
import logging
import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_conn
from config import load_config, CONFIG_DIR
from routes import search, quotes, history, admin
from utils.auth import create_session_token, get_session_minutes, get_session_secret
from utils.seed import seed_all


def configure_logging() -> None:
    level = load_config().get("logging", {}).get("level", "INFO")
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def initialize() -> None:
    load_config()  # Ensures config exists
    init_db()
    with get_conn() as conn:
        seed_all(conn)


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    initialize()
    yield


app = FastAPI(title="Solace", description="Quote search and caching backend", lifespan=lifespan)

# Include routers
app.include_router(search.router, prefix="/search", tags=["search"])
app.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
app.include_router(quotes.favorites_router, prefix="/favorites", tags=["favorites"])
app.include_router(history.router, prefix="/history", tags=["history"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Solace API")
    parser.add_argument("--init", action="store_true", help="Initialize DB, config and seed data")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--token", metavar="USER_ID", help="Print a session token for USER_ID and exit")
    parser.add_argument("--premium", action="store_true", help="Mark the --token session as premium")
    args = parser.parse_args()
    if args.token:
        secret = get_session_secret()
        if not secret:
            sys.exit("Set [session] secret or SESSION_SECRET first")
        print(create_session_token(args.token, secret, get_session_minutes(), args.premium))
        sys.exit(0)
    if args.init:
        configure_logging()
        initialize()
        print(f"DB initialized and config copied to {CONFIG_DIR}/")
        sys.exit(0)
    # Run server
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
