#!/usr/bin/env python3
"""
Polybot v1.0
============
Paper/live trading bot for binary prediction markets.

Features:
- Complement arbitrage, extreme-price value and momentum detectors
- Maker-style entries with stop-loss / take-profit / timeout exits
- Optional live orders through the signing backend
- Local and Supabase state persistence, Telegram alerts
- NiceGUI dashboard

Usage:
    polybot run                               # Paper trading, all strategies
    polybot run --mode live --strategies AB   # Live orders, arbitrage + value
    polybot dashboard --port 8050             # Browser dashboard
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime

from .alerts import AlertManager
from .api.trading import TradingClient
from .bot import TradingBot
from .config import config
from .errors import NetworkError
from .paper_trading import PositionEngine, SummaryChart, TradingMode, get_mode_comparison
from .paper_trading.presets import get_preset
from .storage import LocalStore
from .sync import RemoteStateStore


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Polybot - prediction market trading bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
    polybot run --duration 600                # 10 minute paper session
    polybot run --preset conservative --strategies B
    polybot status
    polybot wallet

{get_mode_comparison()}
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run
    run_parser = subparsers.add_parser("run", help="Run the bot headless")
    run_parser.add_argument(
        "--mode",
        choices=["paper", "live"],
        help="Trading mode (default: keep persisted mode, paper for new accounts)",
    )
    run_parser.add_argument(
        "--strategies",
        type=str,
        default=None,
        help="Enabled strategy codes, e.g. ABC (default: keep persisted, ABC for new)",
    )
    run_parser.add_argument(
        "--balance",
        type=float,
        default=None,
        help=f"Starting balance for a new account (default: {config.engine.starting_balance})",
    )
    run_parser.add_argument(
        "--preset",
        choices=[m.value for m in TradingMode],
        help="Risk preset (overrides sizing, stop and hold settings)",
    )
    run_parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Duration in seconds (0 = unlimited, default: 0)",
    )
    run_parser.add_argument(
        "--role",
        choices=["admin", "viewer"],
        default=None,
        help=f"Sync role (default: {config.sync.role})",
    )
    run_parser.add_argument("--no-alerts", action="store_true", help="Disable alerts")
    run_parser.add_argument("--debug", action="store_true", help="Enable debug output")

    # status / reset / wallet
    subparsers.add_parser("status", help="Show the persisted account")
    subparsers.add_parser("reset", help="Reset stats, keep the starting balance")
    subparsers.add_parser("wallet", help="Show the signing wallet balances")

    # dashboard
    dash_parser = subparsers.add_parser("dashboard", help="Run the browser dashboard")
    dash_parser.add_argument("--port", type=int, default=8050, help="Port to run on")
    dash_parser.add_argument("--role", choices=["admin", "viewer"], default=None)
    dash_parser.add_argument("--no-alerts", action="store_true", help="Disable alerts")

    return parser.parse_args(argv)


def setup_logging(debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_engine(store: LocalStore) -> PositionEngine:
    """Engine restored from the local files"""
    engine = PositionEngine()
    account = store.load_account()
    if account is not None:
        engine.restore(account, store.load_positions(), store.load_trades())
    return engine


async def run_bot(args):
    """Run the bot headless"""
    settings = config
    if args.preset:
        settings = get_preset(TradingMode(args.preset)).apply(settings)
    if args.balance:
        settings = replace(settings, engine=replace(settings.engine, starting_balance=args.balance))

    bot = TradingBot(
        store=LocalStore(),
        alerts=None if args.no_alerts else AlertManager(),
        remote=RemoteStateStore(settings=settings.sync),
        settings=settings,
        role=args.role,
    )

    source = await bot.load_state()
    print(f"\n  State loaded from {source}")
    if source != "defaults" and args.balance:
        print("  --balance ignored for an existing account (use `polybot reset`)")

    if args.mode:
        bot.set_mode(args.mode)
    if args.strategies:
        bot.set_strategies(args.strategies.upper())
    elif source == "defaults":
        bot.set_strategies("ABC")
    if not bot.read_only:
        bot.start()

    try:
        await bot.run(args.duration or None)
    finally:
        print("\n" + "=" * 64)
        print("  TRADING SESSION COMPLETE")
        print("=" * 64)
        bot.engine.print_status()
        bot.engine.print_recent_trades(10)
        save_summary(bot.engine)


def save_summary(engine: PositionEngine):
    """Save summary (JSON + PNG)"""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    json_file = f"polybot_session_{timestamp}.json"
    with open(json_file, "w") as f:
        json.dump(engine.get_summary(), f, indent=2)

    png_file = f"polybot_session_{timestamp}.png"
    SummaryChart(engine).save(png_file)

    print("\n  Results saved:")
    print(f"    {json_file}")
    print(f"    {png_file}")


def show_status():
    engine = load_engine(LocalStore())
    engine.print_status()
    engine.print_recent_trades(10)


def reset_account():
    store = LocalStore()
    engine = load_engine(store)
    engine.reset()
    store.save_engine(engine)
    print(f"  Account reset: balance ${engine.account.balance:,.2f}")


async def show_wallet():
    async with TradingClient() as client:
        try:
            wallet = await client.get_wallet_info()
        except NetworkError as e:
            print(f"  Wallet unavailable: {e}")
            return

    print()
    print("=" * 64)
    print("  WALLET")
    print("=" * 64)
    print(f"  Address: {wallet.address or 'unknown'}")
    print(f"  USDC:    ${wallet.usdc_balance:,.2f}")
    print(f"  Gas:     {wallet.native_balance:.4f} {'(ok)' if wallet.has_gas else '(insufficient)'}")
    print("=" * 64)


async def main_async(args):
    if args.command == "run":
        await run_bot(args)
    elif args.command == "wallet":
        await show_wallet()


def main(argv=None):
    """Entry point"""
    args = parse_args(argv)
    if args.command is None:
        args = parse_args(["run"])

    config.debug = getattr(args, "debug", False)
    setup_logging(config.debug)

    if args.command == "status":
        show_status()
        return
    if args.command == "reset":
        reset_account()
        return
    if args.command == "dashboard":
        from .dashboard import run_dashboard

        run_dashboard(port=args.port, role=args.role, enable_alerts=not args.no_alerts)
        return

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\n\n  Session interrupted by user")
        print("  Goodbye!")
        sys.exit(0)


if __name__ == "__main__":
    main()
