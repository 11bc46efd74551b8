#!/usr/bin/env python3
"""Walk through pysubtree change detection on a small state tree.

Runs three rounds against a fresh store and prints which subscribers fired:

1) shallow ``set_partial`` of an unrelated key,
2) in-place mutation of a nested leaf,
3) reassignment of a subtree with an equal value.

Use ``--debug`` to see flush scheduling logs.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysubtree import Store, StoreConfig  # noqa: E402


def _attach(store: Store[Any], fired: list[str]) -> None:
    store.subscribe(lambda: fired.append("<state>"))
    for path in ("open", "summary", "summary.total"):
        store.subscribe_path(path, lambda _value, path=path: fired.append(path))


async def _round(title: str, mutate: Any, config: StoreConfig) -> None:
    store = Store({"open": False, "summary": {"total": 0}}, config=config)
    fired: list[str] = []
    _attach(store, fired)

    mutate(store)
    await store.wait_flushed()
    print(f"{title:<36} fired={fired}")


def _set_open(store: Store[Any]) -> None:
    store.set_partial(open=True)


def _bump_total(store: Store[Any]) -> None:
    store.get_state()["summary"]["total"] = 5
    store.request_flush()


def _replace_summary(store: Store[Any]) -> None:
    store.get_state()["summary"] = {"total": 0}
    store.request_flush()


async def _main(args: argparse.Namespace) -> int:
    config = StoreConfig.from_env(flush_delay=args.delay)
    await _round("set_partial(open=True)", _set_open, config)
    await _round("summary.total = 5 (in place)", _bump_total, config)
    await _round("summary = {'total': 0} (reassign)", _replace_summary, config)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--delay", type=float, default=0.0, help="flush delay in seconds")
    parser.add_argument("--debug", action="store_true", help="enable DEBUG logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
