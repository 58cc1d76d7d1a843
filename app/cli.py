"""
Command-line interface for headless circuit simulation.

Run circuits for a stretch of simulated time, validate them, export
normalised JSON, and plot node voltages without any GUI.

Usage::

    python -m cli run circuit.json --duration 0.5
    python -m cli run circuit.json --format csv --output trace.csv
    python -m cli validate circuit.json
    python -m cli export circuit.json --output normalised.json
    python -m cli plot circuit.json --output voltages.png
    python -m cli repl --load circuit.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from models.component import COMPONENT_TYPES
from scripting.circuit import Circuit
from simulation.options import EngineOptions, load_options

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

REPL_BANNER = (
    "Circuit engine REPL\n"
    "Available: Circuit, EngineOptions, COMPONENT_TYPES\n"
    "Try: c = Circuit(); c.add_component('Resistor')"
)


def try_load_circuit(filepath: str, options: EngineOptions | None = None) -> tuple[Circuit | None, str]:
    """Load and validate a circuit JSON file without exiting.

    Returns:
        (circuit, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        return Circuit.load(path, options), ""
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"
    except ValueError as e:
        return None, f"invalid circuit file: {e}"
    except OSError as e:
        return None, f"could not read {filepath}: {e}"


def load_circuit(filepath: str, options: EngineOptions | None = None) -> Circuit:
    """Load and validate a circuit JSON file.

    Raises:
        SystemExit: On file read or validation errors.
    """
    circuit, error = try_load_circuit(filepath, options)
    if circuit is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return circuit


def resolve_options(args: argparse.Namespace) -> EngineOptions:
    """Engine options from --options, or defaults.

    Raises:
        SystemExit: If the options file cannot be used.
    """
    path = getattr(args, "options", None)
    if not path:
        return EngineOptions()
    try:
        return load_options(path)
    except (OSError, ValueError) as e:
        print(f"Error: invalid options file {path}: {e}", file=sys.stderr)
        sys.exit(1)


def _simulate(args: argparse.Namespace) -> Circuit:
    circuit = load_circuit(args.circuit, resolve_options(args))
    for warning in circuit.validate()[2]:
        print(f"Warning: {warning}", file=sys.stderr)

    time_step = args.step if args.step is not None else circuit.options.default_time_step
    if time_step <= 0 or args.duration < 0:
        print("Error: --step must be positive and --duration non-negative", file=sys.stderr)
        sys.exit(1)

    circuit.enable_trace()
    circuit.run_for(args.duration, time_step)
    return circuit


def _write_output(text: str, output: str | None, what: str) -> None:
    if output:
        Path(output).write_text(text)
        print(f"{what} written to {output}", file=sys.stderr)
    else:
        print(text)


def cmd_run(args: argparse.Namespace) -> int:
    """Simulate a circuit for a duration and output the final state or the trace."""
    circuit = _simulate(args)

    if args.format == "csv":
        text = circuit.enable_trace().to_csv(Path(args.circuit).stem)
    else:
        state = circuit.get_state()
        data = state.to_dict()
        data["visual"] = {comp_id: circuit.visual_state(comp_id) for comp_id in circuit.components}
        text = json.dumps(data, indent=2)

    _write_output(text, args.output, "Results")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a circuit without simulating."""
    circuit = load_circuit(args.circuit)
    is_valid, errors, warnings = circuit.validate()

    if is_valid:
        print(f"Circuit is valid: {args.circuit}")
        for warning in warnings:
            print(f"  Warning: {warning}")
        return 0
    else:
        print(f"Circuit has errors: {args.circuit}", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        return 1


def cmd_export(args: argparse.Namespace) -> int:
    """Export the circuit as normalised JSON (canonical types, coerced values)."""
    circuit = load_circuit(args.circuit)
    _write_output(json.dumps(circuit.to_dict(), indent=2), args.output, "JSON")
    return 0


def cmd_plot(args: argparse.Namespace) -> int:
    """Simulate a circuit and save a PNG of its node voltages over time."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    circuit = _simulate(args)
    fig = circuit.enable_trace().plot(title=args.title or Path(args.circuit).stem)
    if fig is None:
        print("Error: nothing to plot (zero duration?)", file=sys.stderr)
        return 1

    fig.savefig(args.output, dpi=120)
    plt.close(fig)
    print(f"Plot written to {args.output}", file=sys.stderr)
    return 0


def build_repl_namespace(load_path: str | None = None) -> dict:
    """Build the namespace dict for the interactive REPL."""
    namespace = {
        "Circuit": Circuit,
        "EngineOptions": EngineOptions,
        "COMPONENT_TYPES": COMPONENT_TYPES,
    }

    if load_path:
        circuit, error = try_load_circuit(load_path)
        if circuit is None:
            print(f"Warning: could not load {load_path}: {error}", file=sys.stderr)
        else:
            namespace["circuit"] = circuit
            print(f"Loaded circuit from {load_path} as 'circuit'", file=sys.stderr)

    return namespace


def cmd_repl(args: argparse.Namespace) -> int:
    """Launch an interactive Python REPL with the scripting API."""
    import code

    namespace = build_repl_namespace(getattr(args, "load", None))
    code.interact(banner=REPL_BANNER, local=namespace)
    return 0


def _add_run_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("circuit", help="Path to circuit JSON file")
    parser.add_argument("--duration", type=float, default=1.0, help="Simulated seconds to run (default: 1.0)")
    parser.add_argument("--step", type=float, default=None, help="Time step in seconds (default: from options)")
    parser.add_argument("--options", help="JSON file of engine option overrides")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="circuit-lab",
        description="Run, validate, export and plot circuits from the command line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log engine activity to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # run
    run_parser = subparsers.add_parser("run", help="Simulate a circuit and output results")
    _add_run_arguments(run_parser)
    run_parser.add_argument("--format", choices=["json", "csv"], default="json",
                            help="json: final state; csv: per-tick trace (default: json)")
    run_parser.add_argument("--output", "-o", help="Write results to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check circuit for problems without simulating")
    val_parser.add_argument("circuit", help="Path to circuit JSON file")

    # export
    exp_parser = subparsers.add_parser("export", help="Export circuit as normalised JSON")
    exp_parser.add_argument("circuit", help="Path to circuit JSON file")
    exp_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # plot
    plot_parser = subparsers.add_parser("plot", help="Plot node voltages over simulated time")
    _add_run_arguments(plot_parser)
    plot_parser.add_argument("--output", "-o", required=True, help="PNG file to write")
    plot_parser.add_argument("--title", help="Plot title (default: circuit file name)")

    # repl
    repl_parser = subparsers.add_parser("repl", help="Launch interactive Python REPL with scripting API")
    repl_parser.add_argument("--load", help="Pre-load a circuit JSON file as 'circuit' variable")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "run": cmd_run,
        "validate": cmd_validate,
        "export": cmd_export,
        "plot": cmd_plot,
        "repl": cmd_repl,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
