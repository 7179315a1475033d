"""
Create a settings table on a configured binding and optionally write values.

Usage:
  python -m querygate.scripts.init_settings \
      --binding DB --table settings \
      --set theme=dark --set page_size=50
"""
from __future__ import annotations

import argparse
import asyncio
import json

from querygate.db import DEFAULT_BINDING, close_bindings, open_bindings
from querygate.gateway import QueryGateway
from querygate.logs import LogContext, configure_logging, ensure_log_schema
from querygate.services.config_svc import update_config


def parse_pair(text: str) -> tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {text!r}")
    return key, value


async def run(binding: str, table: str, pairs: list[tuple[str, str]]) -> list[dict]:
    handles = await open_bindings([binding])
    try:
        gw = QueryGateway()
        gw.bind_from_context(handles, binding)
        await gw.init_settings_table(table)
        if pairs:
            await ensure_log_schema(gw)
            log = LogContext("INIT_SETTINGS", user="cli")
            log.set_payload(dict(pairs))
            await update_config(gw, dict(pairs), log, table)
            await log.write(gw, "OK")
        return await gw.get_all_settings(table)
    finally:
        await close_bindings(handles)


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--binding", default=DEFAULT_BINDING)
    ap.add_argument("--table", default="settings")
    ap.add_argument("--set", dest="pairs", action="append", type=parse_pair, default=[])
    args = ap.parse_args(argv)

    configure_logging()
    rows = asyncio.run(run(args.binding, args.table, args.pairs))
    print(json.dumps({"message": "ok", "binding": args.binding, "items": rows}, ensure_ascii=False))


if __name__ == "__main__":
    main()
