#!/usr/bin/env python3
"""
Stub depth command used for demonstrating queue-profiler command sources.
"""

from __future__ import annotations

import argparse
import random
import sys


def main() -> None:
    parser = argparse.ArgumentParser(description="Queue depth stub")
    parser.add_argument("--queue", type=str, required=True)
    parser.add_argument("--max-depth", type=int, default=100)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--fail", action="store_true", help="Exit non-zero to simulate an outage")
    args = parser.parse_args()

    if args.fail:
        print(f"[depth-stub] queue {args.queue} unavailable", file=sys.stderr)
        sys.exit(2)

    if args.seed is not None:
        random.seed(args.seed)

    print(random.randint(0, max(args.max_depth, 0)), flush=True)


if __name__ == "__main__":
    main()
