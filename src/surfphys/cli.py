import argparse
import os
import sys

import numpy as np
import pandas as pd

from surfphys.config import load_surface_config, log_boundary, log_params
from surfphys.constants import ICE
from surfphys.errors import ConfigurationError
from surfphys.logging import configure_logging, get_logger
from surfphys.process.loop import OUTPUT_FIELDS, run_surface_loop
from surfphys.process.state import FORCING_FIELDS, SurfaceState

logger = get_logger("cli")


def read_forcing_csv(path: str) -> tuple[np.ndarray, np.ndarray, dict, np.ndarray]:
    """Read a long-format forcing table.

    The table has one row per (step, point) with columns ``step``,
    ``point``, any of the forcing field names and optionally ``mask``.
    The mask of a point is taken from its first row.

    Returns
    -------
    steps, points : ndarray
        Sorted step and point labels
    forcing : dict
        Field name -> array of shape (n_steps, n_points)
    mask : ndarray
        Surface type per point, ice where not given
    """
    df = pd.read_csv(path)
    missing = [c for c in ("step", "point") if c not in df.columns]
    if missing:
        raise ConfigurationError(f"forcing table {path} lacks columns: {', '.join(missing)}")

    df = df.sort_values(["step", "point"])
    steps = np.sort(df["step"].unique())
    points = np.sort(df["point"].unique())

    forcing = {}
    for name in FORCING_FIELDS:
        if name not in df.columns:
            continue
        try:
            table = df.pivot(index="step", columns="point", values=name)
        except ValueError as e:
            raise ConfigurationError(f"duplicate (step, point) rows in {path}") from e
        table = table.reindex(index=steps, columns=points)
        if table.isna().to_numpy().any():
            raise ConfigurationError(f"forcing {name!r} in {path} has missing values")
        forcing[name] = table.to_numpy(dtype=np.float64)

    if not forcing:
        raise ConfigurationError(f"no forcing columns in {path}; expected any of {FORCING_FIELDS}")

    if "mask" in df.columns:
        codes = pd.to_numeric(df["mask"], errors="coerce")
        if codes.isna().any() or (codes % 1 != 0).any():
            raise ConfigurationError(f"mask in {path} must hold integer codes 0, 1 or 2")
        mask = codes.groupby(df["point"]).first().reindex(points).to_numpy(dtype=np.int64)
    else:
        mask = np.full(points.shape[0], ICE, dtype=np.int64)

    return steps, points, forcing, mask


def output_frame(output, steps: np.ndarray, points: np.ndarray) -> pd.DataFrame:
    """Per-step output as a long table with one row per (step, point)."""
    n_steps, n_points = steps.shape[0], points.shape[0]
    columns = {
        "step": np.repeat(steps, n_points),
        "point": np.tile(points, n_steps),
    }
    for name in OUTPUT_FIELDS:
        columns[name] = output.data[name].ravel()
    return pd.DataFrame(columns)


def cmd_params(args: argparse.Namespace) -> int:
    """Load, validate and print the parameters of a run configuration."""
    try:
        config = load_surface_config(args.config)
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
        return 2

    log_params(config.params)
    log_boundary(config.bnd, label="bnd")
    log_boundary(config.bnd0, label="bnd0")

    for key, value in config.params.as_dict().items():
        print(f"{key:<12} {value}")
    print(f"{'boundary':<12} {' '.join(config.bnd.forced()) or '-'}")
    print(f"{'boundary0':<12} {' '.join(config.bnd0.forced()) or '-'}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run the engine over a forcing table and write per-step output."""
    if not os.path.exists(args.forcing):
        print(f"Forcing table not found: {args.forcing}")
        return 1

    try:
        config = load_surface_config(args.config)
        steps, points, forcing, mask = read_forcing_csv(args.forcing)
        initial = SurfaceState(n_points=points.shape[0], mask=mask)
        bnd = config.bnd0 if args.equilibrate else config.bnd
        output, _ = run_surface_loop(
            config.params, bnd, forcing, initial_state=initial, progress=args.progress
        )
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
        return 2

    frame = output_frame(output, steps, points)
    if args.out:
        frame.to_csv(args.out, index=False)
        logger.info("output_written", path=args.out, rows=len(frame))
    else:
        frame.to_csv(sys.stdout, index=False)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="surfphys",
        description="Surface energy and mass balance of snow and ice",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for structured events",
    )
    p.add_argument(
        "--log-format",
        default="console",
        choices=["json", "console", "simple"],
        help="Log output format (written to stderr)",
    )
    sub = p.add_subparsers(dest="command")

    # params
    pp = sub.add_parser(
        "params",
        help="Validate and print run parameters",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Load a TOML configuration, validate it and print parameters and forced fields.",
    )
    pp.add_argument("config", help="Path to TOML with a [surface_physics] table")
    pp.set_defaults(func=cmd_params)

    # run
    pr = sub.add_parser(
        "run",
        help="Run the surface balance over a forcing table",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Runs the energy and mass balance for every step of a long-format forcing CSV.",
    )
    pr.add_argument("config", help="Path to TOML with a [surface_physics] table")
    pr.add_argument(
        "forcing",
        help="Forcing CSV with columns step, point, mask and forcing fields (sf, rf, sp, lwd, swd, wind, rhoa, qq)",
    )
    pr.add_argument("--out", default=None, help="Output CSV; defaults to stdout")
    pr.add_argument(
        "--equilibrate",
        action="store_true",
        help="Use the boundary0 switches (equilibration mode)",
    )
    pr.add_argument("--progress", action="store_true", help="Show a progress bar")
    pr.set_defaults(func=cmd_run)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "version", False):
        import importlib.metadata as importlib_metadata

        try:
            ver = importlib_metadata.version("surfphys")
        except importlib_metadata.PackageNotFoundError:
            ver = "unknown"
        print(ver)
        return 0
    if getattr(args, "func", None) is None:
        parser.print_help()
        return 2

    configure_logging(level=args.log_level, format=args.log_format)
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
