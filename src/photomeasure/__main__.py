"""PhotoMeasure command line.

Usage:
  python -m photomeasure measure photo.jpg --calib 120,400 420,400 --known "4 ft" --points 130,80 130,392
  python -m photomeasure measure photo.jpg --calib 100,100 400,110 410,260 95,250 --rect 48in 24in --points 150,150 300,150
  python -m photomeasure parse "4' 6 1/2\""
  python -m photomeasure pile --width 12 --height 8 --depth "3' 6\""
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

from photomeasure.version import __version_display__


def _point(text: str) -> tuple[float, float]:
    try:
        x, y = (float(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y but got {text!r}")
    return x, y


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photomeasure", description="Measure real-world lengths on a photo."
    )
    parser.add_argument("--version", action="version", version=__version_display__)
    parser.add_argument("--config-dir", type=Path, default=None, help="Override the config directory.")
    sub = parser.add_subparsers(dest="command", required=True)

    measure = sub.add_parser("measure", help="Calibrate on a photo and measure one segment.")
    measure.add_argument("image", type=Path)
    measure.add_argument(
        "--calib", type=_point, nargs="+", required=True,
        help="2 points for a known length, or 4 corners (TL TR BR BL) for a known rectangle.",
    )
    known = measure.add_mutually_exclusive_group(required=True)
    known.add_argument("--known", help="Known length between the 2 calibration points, e.g. \"4' 6\\\"\".")
    known.add_argument("--rect", nargs=2, metavar=("WIDTH", "HEIGHT"), help="Known rectangle size.")
    measure.add_argument("--points", type=_point, nargs=2, required=True, help="The segment to measure.")

    parse = sub.add_parser("parse", help="Parse a length and print it in inches and feet/inches.")
    parse.add_argument("text", nargs="+")

    pile = sub.add_parser("pile", help="Estimate pile volume and weight.")
    pile.add_argument("--width", required=True, help="Pile width (bare numbers are feet).")
    pile.add_argument("--height", required=True, help="Pile height.")
    pile.add_argument("--depth", required=True, help="Pile depth.")
    pile.add_argument("--density", type=float, default=None, help="Tons per cubic yard.")

    return parser


def _run_measure(args, config) -> int:
    from photomeasure.core.calibration import CalibrationKind
    from photomeasure.core.engine import MeasureEngine
    from photomeasure.core.points import MEASUREMENT_ROLES, calibration_roles
    from photomeasure.core.units import format_feet_inches

    if args.rect is not None and len(args.calib) != 4:
        print("--rect needs 4 calibration corners", file=sys.stderr)
        return 2
    if args.known is not None and len(args.calib) != 2:
        print("--known needs 2 calibration points", file=sys.stderr)
        return 2

    engine = MeasureEngine.from_image(args.image, config=config)
    if args.rect is not None:
        engine.set_calibration_kind(CalibrationKind.PLANAR_HOMOGRAPHY)
        engine.set_known_rect(*args.rect)
    else:
        engine.set_calibration_kind(CalibrationKind.LINEAR_SCALE)
        engine.set_known_length(args.known)

    for role, p in zip(calibration_roles(engine.calibration_kind), args.calib):
        engine.place_point(role, p)
    summary = engine.commit_calibration()
    print(summary.describe())

    for role, p in zip(MEASUREMENT_ROLES, args.points):
        engine.place_point(role, p)
    inches = engine.compute_measurement()
    print(f"Distance: {format_feet_inches(inches, with_inches=True)}")
    return 0


def _run_parse(args) -> int:
    from photomeasure.core.units import format_feet_inches, parse_length

    status = 0
    for text in args.text:
        inches = parse_length(text)
        if inches is None:
            print(f"{text!r}: not a length", file=sys.stderr)
            status = 1
            continue
        print(f"{text!r}: {inches:g} in = {format_feet_inches(inches)}")
    return status


def _run_pile(args, config) -> int:
    from photomeasure.core.errors import ParseError
    from photomeasure.core.pile import estimate_pile
    from photomeasure.core.units import Unit, convert, parse_length

    feet = []
    for name in ("width", "height", "depth"):
        inches = parse_length(getattr(args, name))
        if inches is None:
            raise ParseError(f"Could not read the pile {name} from {getattr(args, name)!r}")
        feet.append(convert(inches, Unit.INCHES, Unit.FEET))

    density = args.density
    if density is None:
        density = config.get("pile", "density_tons_per_cubic_yard", 1.5)
    print(estimate_pile(*feet, density=density).describe())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool."""
    from photomeasure.config.manager import ConfigManager
    from photomeasure.core.errors import MeasureError
    from photomeasure.core.logging import setup_logging

    args = build_parser().parse_args(argv)

    config = ConfigManager(config_dir=args.config_dir)
    config.load()
    setup_logging(config)
    logger.debug(f"{__version_display__} running '{args.command}'")

    try:
        if args.command == "measure":
            return _run_measure(args, config)
        if args.command == "parse":
            return _run_parse(args)
        return _run_pile(args, config)
    except MeasureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
