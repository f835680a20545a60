#!/usr/bin/env python3
"""
Script: render_chart.py

Purpose: Render one chart recipe from a YAML config to a standalone HTML file.

Usage:
    python scripts/render_chart.py --config recipes/scatter.yaml --output output/scatter.html
    python scripts/render_chart.py --config recipes/pie.yaml --svg --verbose
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import get_settings
from vizpipe.charts.config import create_chart, load_chart_config
from vizpipe.exceptions import PipelineError
from vizpipe.pipeline import format_pipeline_summary, run_pipeline_sync
from vizpipe.render.svg import save_html

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a chart recipe to HTML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="YAML file with a 'chart' section",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output HTML path (default: <output_dir>/<chart_id>.html)",
    )

    parser.add_argument(
        "--svg",
        action="store_true",
        help="Write the bare SVG instead of an HTML page",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging and print stage timings",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_chart_config(args.config)
        chart = create_chart(config)
    except (FileNotFoundError, ValueError, TypeError) as e:
        logger.error(f"Invalid chart config: {e}")
        return 1

    try:
        result = run_pipeline_sync(chart)
    except PipelineError as e:
        logger.error(f"Pipeline failed at {e.stage}: {e}")
        return 1

    if args.verbose:
        print(format_pipeline_summary(result))

    suffix = ".svg" if args.svg else ".html"
    output = Path(args.output) if args.output else settings.output_dir / f"{chart.chart_id}{suffix}"
    save_html(result.svg if args.svg else result.html, output)
    print(f"Wrote {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
