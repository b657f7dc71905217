from __future__ import annotations
import argparse
import uvicorn

from limbuse.config.settings import settings


def main():
    ap = argparse.ArgumentParser(description="Serve the limb use detection API")
    ap.add_argument("--host", default=settings.host)
    ap.add_argument("--port", type=int, default=settings.port)
    ap.add_argument("--workers", type=int, default=settings.workers)
    ap.add_argument("--reload", action="store_true", help="Reload on code changes (single worker)")
    args = ap.parse_args()

    workers = 1 if args.reload else max(1, args.workers)
    print(f"Serving {settings.app_name} on {args.host}:{args.port} ({workers} worker(s))")
    # Import string so every worker loads its own app
    uvicorn.run(
        "limbuse.app:app",
        host=args.host,
        port=args.port,
        workers=workers,
        reload=args.reload,
        log_level=settings.log_level,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
