# Run the scoring service: python -m posture_engine --port 8000
import argparse

import uvicorn

from posture_engine import config


def main():
    parser = argparse.ArgumentParser(description="Posture Scoring Engine")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    uvicorn.run(
        "posture_engine.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
