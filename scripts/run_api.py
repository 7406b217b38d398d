#!/usr/bin/env python3
"""
Run the query engine API with uvicorn
"""
import sys
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn
from config.settings import API_HOST, API_PORT, API_RELOAD, QUERY_RULES_FILE


def main():
    """Main execution"""
    parser = argparse.ArgumentParser(description='Serve the contract query engine API')
    parser.add_argument('--host', default=API_HOST, help='Bind address')
    parser.add_argument('--port', type=int, default=API_PORT, help='Port')
    parser.add_argument('--reload', action='store_true', default=API_RELOAD,
                        help='Restart on code changes (development)')
    args = parser.parse_args()

    print("=" * 80)
    print("🚀 Contract Query Engine API")
    print(f"   Server: http://{args.host}:{args.port}")
    print(f"   Docs:   http://{args.host}:{args.port}/docs")
    print(f"   Rules:  {QUERY_RULES_FILE or 'built-in tables'}")
    print("=" * 80)

    uvicorn.run(
        "src.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
