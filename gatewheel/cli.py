"""
Gate Wheel - Command Line

    gatewheel verify path/to/mappings.json [--shape grouping --grouping face]
    gatewheel dock 13 4 [--preset unrotated | --config wheel.json]
    gatewheel wheel [--preset NAME | --config wheel.json]

Exit status: 0 = pass, 1 = document failed verification, 2 = could not run.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .constants import DEFAULT_PRESET, CARDINAL_NAMES
from .docking import (
    DockingValidator, DocumentShape, ValidationOptions, load_document,
)
from .errors import GateWheelError, require_gate
from .positioning import PositioningAlgorithm, GroupingKind
from .wheel_config import PRESETS, from_preset, load_configuration

logger = logging.getLogger(__name__)


def _configuration(args):
    if getattr(args, "config", None):
        return load_configuration(args.config)
    return from_preset(args.preset)


def _reference_pairs(path: str):
    """Pairs from a JSON list of [a, b] or a connection document."""
    data = load_document(path)
    if isinstance(data, dict):
        data = data.get("mappings", data.get("connections", []))
    if not isinstance(data, list):
        raise GateWheelError(f"Reference file {path} holds no list of pairs")
    pairs = []
    for item in data:
        if isinstance(item, dict):
            pair = (item.get("gate1"), item.get("gate2"))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            pair = tuple(item)
        else:
            raise GateWheelError(f"Reference file {path}: {item!r} is not a gate pair")
        pairs.append((require_gate(pair[0]), require_gate(pair[1])))
    return pairs


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

def cmd_verify(args) -> int:
    document = load_document(args.path)
    logger.info(f"Loaded mapping file: {args.path}")

    options = ValidationOptions(
        required_fields=tuple(args.require or ()),
        grouping=GroupingKind(args.grouping) if args.grouping else None,
        reference_pairs=_reference_pairs(args.reference) if args.reference else None,
        partial=args.partial,
    )
    shape = DocumentShape(args.shape) if args.shape else None
    validator = DockingValidator(PositioningAlgorithm(config=_configuration(args)))

    if isinstance(document, dict):
        report = validator.verify_knowledge_system(document, shape=shape, options=options)
    elif shape is None:
        logger.error("A bare entry list needs --shape")
        return 2
    else:
        report = validator.validate(document, shape, options)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.summary())
    return 0 if report.passed else 1


def cmd_dock(args) -> int:
    root = PositioningAlgorithm(config=_configuration(args))
    data = root.get_docking_data(args.gate, args.line)
    print(json.dumps(data.to_dict(), indent=2))
    return 0


def cmd_wheel(args) -> int:
    config = _configuration(args)
    rows = []
    for direction in "NESW":
        angle = config.cardinal_angle(direction)
        gate, line = config.locate(angle)
        rows.append({
            "direction": CARDINAL_NAMES[direction],
            "visualAngle": angle,
            "gate": gate,
            "line": line,
        })

    if args.json:
        print(json.dumps({"configuration": config.to_dict(), "cardinals": rows}, indent=2))
        return 0

    print("=" * 60)
    print(f"Start gate:   {config.sequence[0]}")
    print(f"Rotation:     {config.rotation_offset}°")
    print(f"Progression:  {config.cardinal_progression} ({config.visual_direction.value} on the dial)")
    print(f"North anchor: {config.north_position} (off by {config.north_misalignment:+.4f}°)")
    print("=" * 60)
    for row in rows:
        print(f"  {row['direction']:<6} {row['visualAngle']:>7.3f}°  gate {row['gate']:>2}.{row['line']}")
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gatewheel", description="Root positioning and docking verification")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def wheel_options(p):
        p.add_argument("--preset", default=DEFAULT_PRESET, choices=sorted(PRESETS))
        p.add_argument("--config", default=None, help="wheel configuration JSON file")

    verify = sub.add_parser("verify", help="verify a knowledge mapping file")
    verify.add_argument("path")
    verify.add_argument("--shape", choices=[s.value for s in DocumentShape])
    verify.add_argument("--grouping", choices=[k.value for k in GroupingKind])
    verify.add_argument("--require", action="append", metavar="FIELD",
                        help="dotted field every entry must carry (repeatable)")
    verify.add_argument("--reference", metavar="FILE", help="expected connection pairs")
    verify.add_argument("--partial", action="store_true", help="skip completeness checks")
    verify.add_argument("--json", action="store_true")
    wheel_options(verify)
    verify.set_defaults(func=cmd_verify)

    dock = sub.add_parser("dock", help="print docking data for a gate/line")
    dock.add_argument("gate", type=int)
    dock.add_argument("line", type=int, nargs="?", default=1)
    wheel_options(dock)
    dock.set_defaults(func=cmd_dock)

    wheel = sub.add_parser("wheel", help="show where the cardinal points fall")
    wheel.add_argument("--json", action="store_true")
    wheel_options(wheel)
    wheel.set_defaults(func=cmd_wheel)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%H:%M:%S',
    )

    try:
        return args.func(args)
    except (GateWheelError, OSError, json.JSONDecodeError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
