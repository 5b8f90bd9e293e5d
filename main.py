#!/usr/bin/env python3
"""stockrec: position scoring and signal tracking.

Usage:
    python main.py recommend portfolio.yaml                    # score every stock
    python main.py recommend portfolio.yaml --ticker ASML      # one stock, full detail
    python main.py recommend portfolio.yaml --log --portfolio main --user alice
    python main.py recommend watchlist.yaml --log --research --user alice
    python main.py signals --portfolio main                    # recent logged signals
    python main.py performance --portfolio main                # win rates per signal type
"""

import argparse
import json
import sys

from stockrec.analysis.recommendation import generate_all_recommendations
from stockrec.analysis.thresholds import load_engine_config
from stockrec.config import SETTINGS, Paths
from stockrec.exceptions import StockRecError
from stockrec.loader import load_inputs
from stockrec.storage.signal_log import (
    DEFAULT_DEDUP_WINDOW_DAYS,
    HORIZONS,
    SignalLogStore,
    SignalScope,
    calculate_win_rate,
)
from stockrec.utils.logger import setup_logger

logger = setup_logger("main")

DEDUP_WINDOW_DAYS = SETTINGS.get("storage", {}).get("dedup_window_days", DEFAULT_DEDUP_WINDOW_DAYS)


def _scope(args) -> SignalScope:
    if args.research:
        if not args.user:
            raise StockRecError("--research needs --user")
        return SignalScope.research(args.user)
    if not args.portfolio:
        raise StockRecError("Pass --portfolio ID or --research")
    return SignalScope.portfolio(args.portfolio)


def _store(args) -> SignalLogStore:
    return SignalLogStore(args.db or Paths.SIGNAL_DB, user_id=args.user)


def cmd_recommend(args):
    """Score every stock in an inputs file."""
    config = load_engine_config(SETTINGS)
    inputs = load_inputs(args.inputs)
    if args.ticker:
        inputs = [i for i in inputs if i.ticker == args.ticker.upper()]
    recs = generate_all_recommendations(inputs, config)

    if args.json or args.ticker:
        print(json.dumps([r.to_dict() for r in recs], indent=2, default=str))
    else:
        print(f"\n{'Ticker':8s} {'Comp':>6s} {'Conv':>6s} {'Dip':>5s}  {'Primary signal':18s} Bias")
        print("-" * 60)
        for r in recs:
            print(
                f"{r.ticker:8s} {r.composite_score:6.1f} {r.conviction_score:6.0f} "
                f"{r.dip_score:5.0f}  {r.primary_signal.type.value:18s} {r.technical_bias}"
            )

    if args.log:
        result = _store(args).log_multiple_signals(_scope(args), recs, window_days=DEDUP_WINDOW_DAYS)
        print(f"\nSignals logged: {result['logged']}, skipped: {result['skipped']}")


def cmd_signals(args):
    """List recently logged signals."""
    store = _store(args)
    scope = _scope(args)
    if args.ticker:
        rows = store.get_signals_for_ticker(scope, args.ticker.upper(), args.limit)
    elif args.type:
        rows = store.get_signals_by_type(scope, args.type, args.limit)
    else:
        rows = store.get_recent_signals(scope, args.limit)
    for row in rows:
        print(
            f"  {row['created_at'][:16]}  {row['ticker']:8s} {row['signal_type']:18s} "
            f"strength={row['signal_strength']:.0f} price={row['price_at_signal']:.2f}"
        )


def cmd_performance(args):
    """Win rate per signal type."""
    perf = _store(args).get_signal_performance(_scope(args))
    if not perf:
        print("No signals logged yet.")
        return
    header = "".join(f"{'win ' + h:>9s}" for h in HORIZONS)
    print(f"\n{'Signal':18s} {'Total':>6s}{header}")
    for p in perf:
        cells = []
        for h in HORIZONS:
            rate = calculate_win_rate(p, h)
            cells.append(f"{'-' if rate is None else str(rate) + '%':>9s}")
        print(f"{p['signal_type']:18s} {p['total_signals']:6d}{''.join(cells)}")


def _add_scope_args(p):
    p.add_argument("--portfolio", default="", help="Portfolio id")
    p.add_argument("--research", action="store_true", help="Use the user's research scope")
    p.add_argument("--user", default="", help="Authenticated user id")
    p.add_argument("--db", default="", help="Signal log sqlite path")


def main():
    parser = argparse.ArgumentParser(
        description="stockrec: position scoring and signal tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # recommend
    p = sub.add_parser("recommend", help="Score stocks from an inputs file")
    p.add_argument("inputs", help="YAML/JSON inputs file")
    p.add_argument("--ticker", default="", help="Only this ticker")
    p.add_argument("--json", action="store_true", help="Print full JSON")
    p.add_argument("--log", action="store_true", help="Persist primary signals")
    _add_scope_args(p)
    p.set_defaults(func=cmd_recommend)

    # signals
    p = sub.add_parser("signals", help="Recently logged signals")
    p.add_argument("--ticker", default="")
    p.add_argument("--type", default="", help="Signal type, e.g. DIP_OPPORTUNITY")
    p.add_argument("--limit", type=int, default=50)
    _add_scope_args(p)
    p.set_defaults(func=cmd_signals)

    # performance
    p = sub.add_parser("performance", help="Signal win rates")
    _add_scope_args(p)
    p.set_defaults(func=cmd_performance)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    try:
        args.func(args)
    except StockRecError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
