#!/usr/bin/env python3
"""
Multicall Batcher
=================
Runs a list of raw contract reads through Multicall3 and prints the results.

The calls file is a JSON list of objects:
    [{"target": "0x...", "data": "0x06fdde03", "allow_failure": true}, ...]

Usage:
    multicall-batcher calls.json --chain polygon --batch-size 50
    multicall-batcher calls.json --rpc-url https://eth.llamarpc.com
"""
import argparse
import asyncio
import json
import sys

from rich.table import Table

from multicall_batcher.config.chains import find_chain
from multicall_batcher.config.multicall import MulticallConfig
from multicall_batcher.config.settings import (
    MULTICALL3_ADDRESS, DEFAULT_BATCH_SIZE, DEFAULT_TIMEOUT, DEFAULT_BLOCK
)
from multicall_batcher.core.errors import MulticallError, PartialResultsError
from multicall_batcher.core.multicall_engine import multicall_raw
from multicall_batcher.core.network.multicall import Call, CallResult
from multicall_batcher.utils.logger import setup_logging, get_logger, console
from multicall_batcher.utils.rpc_manager import rpc_manager

logger = get_logger(__name__)


def load_calls(path: str) -> list[Call]:
    """Read calls from a JSON file"""
    with open(path, encoding="utf-8") as f:
        entries = json.load(f)

    if not isinstance(entries, list):
        raise ValueError("calls file must contain a JSON list")

    calls = []
    for i, entry in enumerate(entries):
        try:
            data = entry["data"]
            calls.append(Call(
                target=entry["target"],
                allow_failure=bool(entry.get("allow_failure", True)),
                call_data=bytes.fromhex(data[2:] if data.startswith("0x") else data)
            ))
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise ValueError(f"calls[{i}] is malformed: {e}") from e
    return calls


def render_results(calls: list[Call], results: list[CallResult | None]) -> Table:
    """Build a results table"""
    table = Table(title=f"Multicall results ({len(results)} calls)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Target", style="cyan")
    table.add_column("Status")
    table.add_column("Return data", overflow="fold")

    for i, (call, result) in enumerate(zip(calls, results)):
        if result is None:
            status, data = "[yellow]chunk failed[/yellow]", ""
        elif result.success:
            status, data = "[green]ok[/green]", "0x" + result.data.hex()
        else:
            status, data = "[red]failed[/red]", "0x" + result.revert_data.hex()
        table.add_row(str(i), call.target, status, data)
    return table


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch contract reads through Multicall3")
    parser.add_argument("calls", help="JSON file with the calls to execute")
    endpoint = parser.add_mutually_exclusive_group(required=True)
    endpoint.add_argument("--chain", help="Chain name, e.g. polygon or arbitrum")
    endpoint.add_argument("--rpc-url", help="JSON-RPC endpoint URL")
    parser.add_argument("--multicall-address", help="Override the Multicall3 address")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    parser.add_argument("--block", default=DEFAULT_BLOCK, help="Block number or tag")
    parser.add_argument("--partial", action="store_true", help="Report successful chunks when others fail")
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        calls = load_calls(args.calls)
    except (OSError, ValueError) as e:
        logger.error(f"[red]{e}[/red]")
        return 2

    try:
        if args.chain:
            chain = find_chain(args.chain)
            web3 = rpc_manager.get_web3(chain.chain_id)
            multicall_address = args.multicall_address or chain.multicall_address
        else:
            web3 = rpc_manager.get_web3_for_url(args.rpc_url)
            multicall_address = args.multicall_address or MULTICALL3_ADDRESS

        block = int(args.block) if args.block.isdigit() else args.block
        config = MulticallConfig(
            web3=web3,
            multicall_address=multicall_address,
            batch_size=args.batch_size,
            timeout=args.timeout,
            block_identifier=block,
            partial_results=args.partial
        )
        results = await multicall_raw(config, calls)
    except (KeyError, ValueError) as e:
        logger.error(f"[red]{e}[/red]")
        return 2
    except PartialResultsError as e:
        console.print(render_results(calls, e.results))
        logger.error(f"[red]{e}[/red]")
        return 1
    except MulticallError as e:
        logger.error(f"[red]Multicall failed: {e}[/red]")
        return 1
    finally:
        await rpc_manager.close()

    console.print(render_results(calls, results))
    return 0


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
