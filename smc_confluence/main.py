"""
Command line entry point for the SMC confluence engine
"""
import argparse
import dataclasses
import json
import logging
import sys
from typing import List, Optional

from .config import AppConfig, load_config
from .data_loader import BarValidationError, generate_mock_bars, load_csv
from .models import AnalysisResult, Trade
from .signal_generator import analyze_price_data

logger = logging.getLogger(__name__)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply command line overrides on top of the loaded engine config"""
    overrides = {}
    if args.swing_length is not None:
        overrides['swing_length'] = args.swing_length
    if args.min_confluence is not None:
        overrides['min_confluence'] = args.min_confluence
    if args.rr is not None:
        overrides['rr_ratio'] = args.rr
    if args.sl_buffer is not None:
        overrides['sl_buffer'] = args.sl_buffer
    if args.no_sweep:
        overrides['include_sweep'] = False

    if overrides:
        config.engine = dataclasses.replace(config.engine, **overrides)
    return config


def format_summary(result: AnalysisResult, max_score: int) -> str:
    """Human readable summary of an analysis result"""
    lines = [
        "=== SMC Confluence Analysis ===",
        f"Signal: {result.signal}",
        f"Bullish score: {result.bull_score}/{max_score}",
        f"Bearish score: {result.bear_score}/{max_score}",
        f"Order blocks: {len(result.order_blocks)}",
        f"Fair value gaps: {len(result.fvgs)}",
    ]

    if result.structure:
        structure = ', '.join(f"{s.kind} {s.direction} at {s.price:.2f}" for s in result.structure)
    else:
        structure = 'Ranging/Consolidation'
    lines.append(f"Market structure: {structure}")

    for direction, details in result.confluences.items():
        active = [name for name, on in details.to_dict().items() if on]
        lines.append(f"{direction.capitalize()} confluences: {', '.join(active) or 'none'}")

    if isinstance(result.trade, Trade):
        trade = result.trade
        lines.append(
            f"Trade: {trade.direction} entry {trade.entry:.4f} SL {trade.stop_loss:.4f} "
            f"TP {trade.take_profit:.4f} RR {trade.risk_reward:.2f} est. {trade.pnl_estimate:.2f}%"
        )
    else:
        lines.append(f"Trade: none ({result.trade.reason})")

    return '\n'.join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='SMC Confluence Engine - Smart Money Concepts Analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  smc-confluence --csv data/btc_15m.csv
  smc-confluence --mock 150 --min-confluence 3 --json
  smc-confluence --csv data/btc_15m.csv --config config/engine.yaml --rr 3.0
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--csv', help='OHLCV CSV file (timestamp, open, high, low, close[, volume])')
    source.add_argument('--mock', type=int, metavar='N', help='Analyze N generated mock bars')

    parser.add_argument('--config', help='YAML configuration file')
    parser.add_argument('--seed', type=int, help='Random seed for --mock')
    parser.add_argument('--swing-length', type=int, help='Pivot half-window length')
    parser.add_argument('--min-confluence', type=int, help='Confluences required to fire a signal')
    parser.add_argument('--rr', type=float, help='Target risk/reward multiple')
    parser.add_argument('--sl-buffer', type=float, help='Stop-loss buffer in percent')
    parser.add_argument('--no-sweep', action='store_true', help='Score without the liquidity sweep factor')
    parser.add_argument('--json', action='store_true', help='Print the result as JSON')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with command line argument parsing"""
    args = build_parser().parse_args(argv)

    # Handler before config loading, level once the config is known
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config(args.config) if args.config else AppConfig()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    config = apply_overrides(config, args)
    errors = config.validate()
    if errors:
        print(f"Error: invalid configuration: {errors}", file=sys.stderr)
        return 1

    logging.getLogger().setLevel(getattr(logging, config.log_level))

    try:
        if args.csv:
            bars = load_csv(args.csv)
        else:
            bars = generate_mock_bars(args.mock, seed=args.seed)
        result = analyze_price_data(bars, config.engine)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except BarValidationError as e:
        print(f"Error: malformed bars: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_summary(result, config.engine.max_score))

    return 0


if __name__ == '__main__':
    sys.exit(main())
