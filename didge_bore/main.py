#!/usr/bin/env python3
"""
Didgeridoo Bore Designer - CLI Interface

Analyze bore geometries and estimate the length needed for a target drone.
"""

import argparse
import logging
import sys

from .atmosphere import SOUND_SPEED_PROFILES, get_sound_speed_profile
from .design import find_length_for_frequency, find_length_for_note
from .engine import CALCULATION_METHODS, ONLINE_ADVANCED, GeometryFailed, Ok, analyze, run_analysis
from .geometry import TEMPLATES, get_template
from .notes import TUNING_REFERENCES, frequency_to_note, note_to_frequency
from .solver import MAX_HARMONICS
from .units import METRIC, UNIT_SYSTEMS

EXIT_INVALID_INPUT = 2


def _sound_speed(args):
    if args.sound_speed is not None:
        return args.sound_speed
    return get_sound_speed_profile(args.atmosphere)


def _read_geometry(args) -> str:
    if args.file:
        with open(args.file, encoding='utf-8') as f:
            return f.read()
    if args.geometry == '-':
        return sys.stdin.read()
    return args.geometry.replace('\\n', '\n')


def analyze_command(args) -> int:
    """Analyze a bore and report its harmonic series."""
    options = dict(
        sound_speed=_sound_speed(args),
        max_harmonics=args.harmonics,
        method=args.method,
        a4=args.a4,
    )

    if args.template:
        template = get_template(args.template)
        print(f"Template: {template.name} - {template.description}")
        print(analyze(template.profile, **options).summary())
        return 0

    outcome = run_analysis(_read_geometry(args), args.units, **options)

    if isinstance(outcome, Ok):
        for c in outcome.corrections:
            print(f"Note: {c.axis} values rescaled by {c.factor:g} ({c.reason})")
        print(outcome.result.summary())
        return 0

    if isinstance(outcome, GeometryFailed):
        print(f"Cannot analyze bore: {outcome.reason}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    print("INVALID GEOMETRY:", file=sys.stderr)
    for err in outcome.errors:
        print(f"  [{err.code}] {err.message}", file=sys.stderr)
    return EXIT_INVALID_INPUT


def estimate_command(args) -> int:
    """Estimate bore length for a target drone."""
    speed = _sound_speed(args)
    if args.note:
        estimate = find_length_for_note(args.note, args.template, speed, a4=args.a4)
    else:
        estimate = find_length_for_frequency(args.frequency, args.template, speed)

    note = frequency_to_note(estimate.achieved_frequency, args.a4)
    print(f"\nShape: {args.template}")
    print(f"  Target: {estimate.target_frequency:.2f} Hz", end="")
    if args.note:
        print(f" ({args.note})")
    else:
        print("")
    print(f"  Recommended length: {estimate.length * 100:.1f} cm")
    print(f"  Predicted drone: {estimate.achieved_frequency:.2f} Hz "
          f"({note.name} {note.cent_diff:+.1f}¢)")
    return 0


def note_command(args) -> int:
    """Convert between frequencies and note names."""
    if args.note:
        print(f"{args.note} = {note_to_frequency(args.note, args.a4):.2f} Hz")
    else:
        note = frequency_to_note(args.frequency, args.a4)
        print(f"{args.frequency:.2f} Hz = {note.name} {note.cent_diff:+.1f}¢")
    return 0


def templates_command(args) -> int:
    """List bore templates with their predicted drone."""
    print("\nBORE TEMPLATES:")
    print("=" * 60)

    seen = set()
    for name, template in sorted(TEMPLATES.items()):
        if template.name in seen:
            continue
        seen.add(template.name)
        profile = template.profile
        f1 = analyze(profile, max_harmonics=1).fundamental
        print(f"\n{template.name}:")
        print(f"  Length {profile.length * 100:.0f} cm, "
              f"mouth {profile.mouth_diameter * 1000:.0f} mm, "
              f"bell {profile.bell_diameter * 1000:.0f} mm, "
              f"drone {f1.frequency:.1f} Hz ({f1.note_name})")
        if template.description:
            print(f"  {template.description}")
    return 0


def atmospheres_command(args) -> int:
    """List sound-speed profiles."""
    print("\nATMOSPHERES:")
    print("=" * 60)

    seen = set()
    for name, profile in sorted(SOUND_SPEED_PROFILES.items()):
        if profile.name in seen:
            continue
        seen.add(profile.name)
        print(f"\n{profile.name}:")
        print(f"  c = {profile.speed:.0f} m/s, T = {profile.temperature:.0f} °C, "
              f"RH = {profile.humidity:.0f} %, p = {profile.pressure:.0f} hPa")
        if profile.description:
            print(f"  {profile.description}")
    return 0


def _add_air_options(parser):
    parser.add_argument('--sound-speed', type=float, help='Speed of sound (m/s), overrides --atmosphere')
    parser.add_argument('--atmosphere', type=str, default='standard',
                        help='Atmosphere profile (default: standard)')
    parser.add_argument('--a4', type=float, default=TUNING_REFERENCES['standard'],
                        help='Tuning reference for A4 (Hz)')


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Didgeridoo Bore Designer - acoustic analysis of bore geometries',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a bore (position cm, diameter mm per line)
  python -m didge_bore analyze --geometry "0 30\\n3 32\\n8 35\\n12 40\\n150 120"

  # Analyze a template with the transfer-matrix model
  python -m didge_bore analyze --template d155 --method transfer_matrix

  # Find the length for a drone on D
  python -m didge_bore estimate --note D1 --template tapered

  # Note of a frequency
  python -m didge_bore note --frequency 73.4

  # List templates and atmospheres
  python -m didge_bore templates
  python -m didge_bore atmospheres
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Analyze a bore')
    source = analyze_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--geometry', type=str, help="Bore points, one 'position diameter' pair per line ('-' reads stdin)")
    source.add_argument('--file', type=str, help='Text file with bore points')
    source.add_argument('--template', type=str, help='Bore template name')
    analyze_parser.add_argument('--units', type=str, default=METRIC, choices=UNIT_SYSTEMS,
                                help='metric: cm/mm, imperial: inches, si: meters')
    analyze_parser.add_argument('--harmonics', type=int, default=MAX_HARMONICS, help='Number of harmonics')
    analyze_parser.add_argument('--method', type=str, default=ONLINE_ADVANCED, choices=CALCULATION_METHODS,
                                help='Calculation method')
    _add_air_options(analyze_parser)

    # Estimate length command
    est_parser = subparsers.add_parser('estimate', help='Estimate length for a target drone')
    est_parser.add_argument('--note', type=str, help='Target note (e.g., D1)')
    est_parser.add_argument('--frequency', type=float, help='Target frequency (Hz)')
    est_parser.add_argument('--template', type=str, default='traditional', help='Bore shape to scale')
    _add_air_options(est_parser)

    # Note command
    note_parser = subparsers.add_parser('note', help='Convert between frequency and note')
    note_parser.add_argument('--frequency', type=float, help='Frequency (Hz)')
    note_parser.add_argument('--note', type=str, help='Note name (e.g., A#4)')
    note_parser.add_argument('--a4', type=float, default=TUNING_REFERENCES['standard'],
                             help='Tuning reference for A4 (Hz)')

    subparsers.add_parser('templates', help='List bore templates')
    subparsers.add_parser('atmospheres', help='List atmosphere profiles')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    try:
        if args.command == 'analyze':
            return analyze_command(args)
        elif args.command == 'estimate':
            if not args.note and not args.frequency:
                parser.error("Must specify --note or --frequency")
            return estimate_command(args)
        elif args.command == 'note':
            if not args.note and not args.frequency:
                parser.error("Must specify --note or --frequency")
            return note_command(args)
        elif args.command == 'templates':
            return templates_command(args)
        elif args.command == 'atmospheres':
            return atmospheres_command(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
