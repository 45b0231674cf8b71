from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

from rich import print as rprint
from rich.console import Console
from rich.syntax import Syntax

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
for root in (str(PROJECT_ROOT), str(SRC_ROOT)):
    if root not in sys.path:
        sys.path.insert(0, root)

from orbita.presets import MISSION_PRESETS, get_preset
from orbita.profiles import HardwareProfiles
from orbita.transpile import Transpiler


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a MicroPython program from a mission preset."
    )
    parser.add_argument(
        "--preset",
        default=MISSION_PRESETS[0].id,
        choices=[preset.id for preset in MISSION_PRESETS],
        help=f"Mission preset to transpile (default: {MISSION_PRESETS[0].id}).",
    )
    parser.add_argument(
        "--profile",
        default="PION_CANSAT_V1",
        choices=list(HardwareProfiles.default().ids()),
        help="Hardware profile (default: PION_CANSAT_V1).",
    )
    parser.add_argument(
        "--output",
        default="scratchpad/generated_orbita.py",
        help="Output file path (default: scratchpad/generated_orbita.py).",
    )
    parser.add_argument(
        "--cycle-delay-ms",
        type=int,
        default=50,
        help="Delay at the end of every control cycle (default: 50).",
    )
    parser.add_argument(
        "--timestamp",
        action="store_true",
        help="Write the generation time into the header.",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Also print the generated source to stdout.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    preset = get_preset(args.preset)

    transpiler = Transpiler(cycle_delay_ms=args.cycle_delay_ms)
    generated_at = datetime.now(timezone.utc) if args.timestamp else None
    result = transpiler.transpile(
        preset.nodes, preset.edges, args.profile, generated_at=generated_at
    )

    for warning in result.warnings:
        rprint(f"[yellow]warning:[/yellow] {warning}")
    if not result.success:
        rprint(f"[bold red]Transpile of {preset.id} failed:[/bold red]")
        for error in result.errors:
            rprint(f"  {error}")
        return 1

    assert result.code is not None
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.code, encoding="utf-8")

    rprint(
        f"[green]Wrote {output_path}[/green] ({len(result.code.splitlines())} lines, "
        f"{result.node_count} nodes, order: {' -> '.join(result.order)})"
    )
    if args.stdout:
        Console().print(Syntax(result.code, "python", line_numbers=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
