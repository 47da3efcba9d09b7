"""
Example: Analyze a didgeridoo bore and size a new one for a target drone.

This file walks through every stage of the analysis.
Adjust the measurements and options below to suit your instrument.
"""

from didge_bore import (
    validate_and_build_profile, analyze, run_analysis, find_length_for_note,
    custom_sound_speed_profile, get_sound_speed_profile, Ok
)


# =========================================================================
# Measurements
# =========================================================================
# One 'position diameter' pair per line, mouthpiece first.
# Metric input is position in cm and diameter in mm.
# Commas, semicolons and comments (# or //) are accepted.
# Imperial input is in inches and may use fractions: 59" 4 3/4"

measurements = """
# Eucalyptus, measured with calipers
0     30    // mouthpiece
3     32
8     35
12    40
60    52
110   75
150   120   // bell
"""

units = 'metric'             # 'metric' (cm/mm), 'imperial' (in), 'si' (m)


# =========================================================================
# Air
# =========================================================================
# Built-in: 'standard' (343 m/s), 'hot' (349), 'cold' (331),
#           'high_altitude' (335)
# Or build one from a thermometer reading:

air = get_sound_speed_profile('standard')
# air = custom_sound_speed_profile('workshop', temperature=24.0, humidity=55.0)


# =========================================================================
# Validation
# =========================================================================
# Obvious unit slips (diameters typed in m, positions in m) are rescaled
# and reported as corrections.  Set auto_correct=False to reject them.

validation = validate_and_build_profile(measurements, units, auto_correct=True)


if __name__ == '__main__':
    if not validation.valid:
        for err in validation.errors:
            print(f"[{err.code}] {err.message}")
        raise SystemExit(2)

    for c in validation.corrections:
        print(f"Rescaled {c.axis} by {c.factor:g}: {c.reason}")


    # =====================================================================
    # Analysis
    # =====================================================================
    # method:
    #   'online_advanced'    closed form with mouthpiece analysis (default)
    #   'offline_simplified' precomputed table, within ~5% of the above
    #   'transfer_matrix'    full impedance spectrum, slowest

    result = analyze(
        validation.profile,
        sound_speed=air,
        max_harmonics=8,             # Odd harmonics to report
        method='online_advanced',
        a4=440.0                     # Tuning reference for note names
    )
    print(result.summary())

    tmm = analyze(validation.profile, sound_speed=air, max_harmonics=4,
                  method='transfer_matrix')
    print("\nTransfer-matrix resonances:")
    for h in tmm.results:
        print(f"  {h.frequency:7.2f} Hz  {h.note_name:<4} Q-quality {h.quality:.2f}")


    # =====================================================================
    # One-step variant
    # =====================================================================
    # run_analysis() validates and analyzes, returning Ok,
    # ValidationFailed or GeometryFailed instead of raising.

    outcome = run_analysis("0 30\n150 120", 'metric', method='offline_simplified')
    if isinstance(outcome, Ok):
        print(f"\nQuick drone estimate: {outcome.result.fundamental.note_name}")


    # =====================================================================
    # Design
    # =====================================================================
    # Stretch a template (or your own profile) until it drones on a note.

    estimate = find_length_for_note('D1', shape='tapered', sound_speed=air)
    print(f"\nTapered bore for D1: {estimate.length * 100:.1f} cm "
          f"({estimate.achieved_frequency:.2f} Hz, {estimate.cent_error:+.2f} cents)")
