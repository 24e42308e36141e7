"""Simulate a bid stream against a packed-Fenwick or frontier auction."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate bids and compare gas across auction backends.",
    )
    parser.add_argument("--model", choices=["fenwick", "frontier"], default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML config layered over defaults.")
    parser.add_argument("--max-ticks", type=int, default=None)
    parser.add_argument("--sale-supply", type=int, default=None)
    parser.add_argument("--bids", type=int, default=100)
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument(
        "--clear-volume",
        type=int,
        default=0,
        help="After bidding, clear this much volume (fenwick only, 0 skips).",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Run the same bid stream through both backends and print a summary.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    from packed_auction.config import resolve_config
    from packed_auction.reporting import memory_layout_frame, storage_comparison
    from packed_auction.simulator import AuctionSimulator, compare_models

    config = resolve_config(
        args.config,
        overrides={
            "model": args.model,
            "max_ticks": args.max_ticks,
            "sale_supply": args.sale_supply,
        },
    )

    pd.set_option("display.width", 120)

    if args.compare:
        print("Backend comparison")
        print("-" * 64)
        print(compare_models(config, args.bids, seed=args.seed).to_string(index=False))
        print()
        print("Storage layout (update to tick 2537)")
        print("-" * 64)
        print(storage_comparison(config.max_ticks, min(2537, config.max_ticks - 1), config.gas)
              .to_string(index=False))
        return

    simulator = AuctionSimulator.from_config(config, seed=args.seed)
    frame = simulator.run(args.bids)

    print(f"Model:             {config.model}")
    print(f"Config version:    {config.config_version}")
    print(f"Max ticks:         {config.max_ticks}")
    admitted = frame.loc[frame["admitted"], "gas"]
    print(f"Bids placed:       {len(frame)}")
    print(f"Bids admitted:     {len(admitted)}")
    print(f"Total gas:         {int(admitted.sum())}")
    if len(admitted):
        print(f"Mean gas per bid:  {admitted.mean():.1f}")
        print(f"Max gas per bid:   {int(admitted.max())}")

    if config.model == "frontier":
        state = simulator.model.get_state()
        print(f"Frontier (P*):     {state['p_star']}")
        print(f"Volume above P*:   {state['v_star']} / {state['sale_supply']}")
        return

    if args.clear_volume > 0:
        outcome = simulator.clear(args.clear_volume)
        print()
        print(f"Clear {args.clear_volume}")
        print("-" * 64)
        if not outcome.search.found:
            print("Not enough volume in the book to clear this amount.")
        else:
            print(f"Clearing price:    {outcome.clearing_price}")
            print(f"Search gas:        {outcome.search_cost.total_gas}")
            print(f"Scan gas:          {outcome.scan_cost.total_gas}")
            print(f"Update gas:        {outcome.update_cost.total_gas}")
            print(f"Ticks filled:      {len(outcome.clear.fills)}")

    print()
    print("Memory layout")
    print("-" * 64)
    print(memory_layout_frame(simulator.model.store).to_string(index=False))


if __name__ == "__main__":
    main()
