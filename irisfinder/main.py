"""
Main CLI Entry Point

Localizes pupil and limbus boundaries in a single eye image or a directory of
images.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from irisfinder.core.config import ConfigError, FinderConfig
from irisfinder.data.config_manager import ConfigManager
from irisfinder.pipeline import LocalizationPipeline, LocalizationResult, PipelineError
from irisfinder.utils.file_io import write_csv, write_json
from irisfinder.visualizer import BoundaryVisualizer, VisualizerConfig

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False):
    """Single stdout handler; DEBUG level with --debug."""
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )

    logging.basicConfig(level=level, handlers=[handler], force=True)


def load_finder_config(config_path: Optional[str]) -> FinderConfig:
    """
    Finder parameters from the ``finder`` section of a JSON file.

    Raises:
        FileNotFoundError: the config file does not exist
        ConfigError: the section holds unknown or inconsistent parameters
    """
    if not config_path:
        return FinderConfig()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    return ConfigManager(path).finder_config()


def print_result(result: LocalizationResult):
    print("\n" + "=" * 60)
    print("  Localization Result")
    print("=" * 60)
    print(f"  Image:   {result.image_path}")
    print(f"  {result.pupil}" if result.pupil.found else "  Pupil:  not found")
    print(f"  {result.limbus}" if result.limbus.found else "  Limbus: not found")
    print(f"  Time:    {result.processing_time_ms:.1f} ms")
    print("=" * 60 + "\n")


def save_outputs(result: LocalizationResult, args, visualizer: BoundaryVisualizer, output_dir: Optional[Path] = None):
    if args.output:
        json_path = Path(args.output) if output_dir is None else output_dir / f"{result.image_path.stem}.json"
        write_json(result.to_dict(), json_path)
        logger.info(f"Result saved to {json_path}")

    if args.overlay:
        overlay_path = Path(args.overlay) if output_dir is None else output_dir / f"{result.image_path.stem}_overlay.png"
        overlay = visualizer.visualize_boundaries(result.image, result.pupil, result.limbus)
        visualizer.save_visualization(overlay, overlay_path)
        logger.info(f"Overlay saved to {overlay_path}")

    if result.trace is not None and args.save_intermediates:
        trace_dir = Path(args.save_intermediates) / result.image_path.stem
        if "hough" in result.trace.images:
            heatmap = visualizer.visualize_accumulator(result.trace.images["hough"])
            visualizer.save_visualization(heatmap, trace_dir / "hough_heatmap.png")
        if "limbus_profile" in result.trace.profiles:
            fig = visualizer.visualize_limbus_profile(result.trace.profiles["limbus_profile"])
            visualizer.save_visualization(fig, trace_dir / "limbus_profile.png")


def process_single_image(args, pipeline: LocalizationPipeline):
    save_dir = Path(args.save_intermediates) if args.save_intermediates else None
    result = pipeline.process(args.image, save_dir=save_dir)
    print_result(result)
    save_outputs(result, args, BoundaryVisualizer(VisualizerConfig()))
    return result


def process_batch(args, pipeline: LocalizationPipeline) -> List[LocalizationResult]:
    save_dir = Path(args.save_intermediates) if args.save_intermediates else None
    results = pipeline.process_batch(Path(args.batch), save_dir=save_dir)

    output_dir = Path(args.output_dir)
    visualizer = BoundaryVisualizer(VisualizerConfig())
    for result in results:
        save_outputs(result, args, visualizer, output_dir=output_dir)

    summary_path = output_dir / "summary.csv"
    df = write_csv([r.summary_row() for r in results], summary_path)
    logger.info(f"Summary of {len(df)} images saved to {summary_path}")

    print(f"\nProcessed {len(results)} images, both boundaries found in {sum(r.found for r in results)}")
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pupil and limbus boundary localization")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--image", type=str, help="Eye image to process")
    source.add_argument("--batch", type=str, help="Directory of eye images to process")

    parser.add_argument("--config", type=str, help="JSON file with a 'finder' parameter section")
    parser.add_argument("--output", type=str, help="Result JSON path (single image) / enable JSON per image (batch)")
    parser.add_argument("--overlay", type=str, help="Overlay image path (single image) / enable overlays (batch)")
    parser.add_argument("--output-dir", type=str, default="results", help="Output directory for batch mode")
    parser.add_argument("--save-intermediates", type=str, help="Directory for mask/contrast/hough images")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        config = load_finder_config(args.config)
        pipeline = LocalizationPipeline(config, save_intermediates=bool(args.save_intermediates))

        if args.image:
            process_single_image(args, pipeline)
        else:
            process_batch(args, pipeline)

    except (FileNotFoundError, ConfigError, PipelineError) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
