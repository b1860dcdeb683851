"""
Tileflow CLI - Command-line interface for the client.

Usage:
    tileflow serve [--host HOST] [--port PORT]     Run the API bridge
    tileflow reconcile PREV NEXT DIRECTION         Show the ops for one transition

PREV and NEXT are JSON boards, e.g. '[[2,2,0,0],[0,0,0,0],[0,0,0,0],[0,0,0,0]]'.
"""

import argparse
import json
import sys

from .config import ClientConfig, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tileflow - board reconciliation client",
        prog="tileflow",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API bridge")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    # Reconcile command
    reconcile_parser = subparsers.add_parser("reconcile", help="Show ops for one transition")
    reconcile_parser.add_argument("previous", help="Board before the move (JSON)")
    reconcile_parser.add_argument("next", help="Board after the move (JSON)")
    reconcile_parser.add_argument("direction", choices=["up", "down", "left", "right"])

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "reconcile":
        cmd_reconcile(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API bridge with uvicorn."""
    import uvicorn
    from .api import create_app

    config = ClientConfig.from_env()
    configure_logging(config.log_level)
    print(f"Rules service: {config.rules_url}")
    uvicorn.run(create_app(config=config), host=args.host, port=args.port)


def cmd_reconcile(args):
    """Reconcile two boards and print the ops."""
    from .board import Direction, SnapshotError, format_board, parse_snapshot
    from .reconcile import IdentityTable, reconcile

    configure_logging("WARNING")

    boards = []
    for label, text in (("previous", args.previous), ("next", args.next)):
        try:
            rows = json.loads(text)
            snapshot = parse_snapshot({"board": rows, "score": 0, "won": False, "gameOver": False})
        except json.JSONDecodeError as e:
            print(f"Error: {label} board is not JSON: {e}")
            sys.exit(1)
        except SnapshotError as e:
            print(f"Error: {label} board is invalid: {e}")
            for detail in e.details:
                print(f"  - {detail['msg']}")
            sys.exit(1)
        boards.append(snapshot.grid)

    previous, nxt = boards
    table = IdentityTable.from_board(previous)
    result = reconcile(previous, nxt, Direction.parse(args.direction), table)

    print(format_board(previous))
    print(f"  -- {args.direction} -->")
    print(format_board(nxt))
    print()
    for op in result.ops:
        print(json.dumps(op.to_dict()))

    if result.inconsistencies:
        print("\nInconsistencies:")
        for note in result.inconsistencies:
            print(f"  - {note}")

    if result.full_redraw:
        print("\nFrame redrawn from scratch")


if __name__ == "__main__":
    main()
