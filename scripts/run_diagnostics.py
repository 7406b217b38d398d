#!/usr/bin/env python3
"""
Run sample queries through the query engine and print the interpretation
"""
import sys
import json
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import QUERY_RULES_FILE
from src.query_engine import RuleConfigError, create_pipeline
from src.utils.logger import setup_logger

logger = setup_logger(__name__)
# Stage modules log through child loggers of the package logger
setup_logger("src.query_engine")


def print_summary(report: list):
    """Print one line per query"""
    for entry in report:
        print(f"{entry['originalText']!r:75} -> {entry['route']:<18} "
              f"{entry['queryType']:<8} {entry['actionType']:<28} "
              f"{entry['confidence']:.2f} ({entry['confidenceLevel']})")


def main():
    """Main execution"""
    parser = argparse.ArgumentParser(description='Run diagnostic queries through the query engine')
    parser.add_argument(
        'queries',
        nargs='*',
        help='Queries to run (default: built-in diagnostic queries)'
    )
    parser.add_argument(
        '--rules',
        type=str,
        default=QUERY_RULES_FILE or None,
        help='JSON rule override file'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print full JSON results instead of a summary'
    )

    args = parser.parse_args()

    try:
        pipeline = create_pipeline(rules_file=args.rules)
    except RuleConfigError as e:
        logger.error(f"❌ Invalid rule tables: {e}")
        sys.exit(1)

    report = pipeline.run_diagnostics(args.queries or None)

    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        print_summary(report)

    stats = pipeline.get_performance_stats()
    logger.info(f"✅ {stats['total_queries']} queries, avg {stats['avg_time_ms']:.2f}ms")


if __name__ == "__main__":
    main()
