from __future__ import annotations
import argparse
from pathlib import Path

from core import data_io, datasets, models, report
from core.fit_api import build_config, run_fit
from fit import available_methods
from infra import config as config_mod
from infra.logging import get_logger, level_for


def _floats(text: str) -> list[float]:
    try:
        return [float(tok) for tok in text.replace(";", ",").split(",") if tok.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated numbers, got {text!r}") from None


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Fit a model to data with asymmetric errors.")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--data", help="Observation table (value, covariate, err_minus, err_plus)")
    src.add_argument("--example", choices=sorted(datasets.EXAMPLES), help="Built-in dataset")
    p.add_argument("--model", choices=sorted(models.MODELS), help="Model name (defaults to the example's model)")
    p.add_argument("--init", type=_floats, help="Initial values, comma separated")
    p.add_argument("--steps", type=_floats, help="Step sizes, comma separated")
    # Stopping policy; unset flags fall back to the config file / defaults
    p.add_argument("--strategy", type=int, choices=[0, 1, 2])
    p.add_argument("--tolerance", type=float)
    p.add_argument("--max-iterations", type=int)
    p.add_argument("--max-calls", type=int, dest="max_function_calls")
    p.add_argument("--method", choices=available_methods())
    p.add_argument("--no-fallback", action="store_true", default=False, help="Disable the simplex fallback")
    p.add_argument("--config", help="JSON configuration file")
    p.add_argument("--output", help="Write the parameter table to this CSV")
    p.add_argument("-v", "--verbose", action="store_true", default=False)
    return p.parse_args(argv)


def _setup(args):
    cfg = config_mod.load(args.config) if args.config else config_mod.defaults()
    opts = dict(config_mod.section(cfg, "minimizer"))
    for key in ("strategy", "tolerance", "max_iterations", "max_function_calls", "method"):
        val = getattr(args, key)
        if val is not None:
            opts[key] = val
    if args.no_fallback:
        opts["fallbacks"] = []

    if args.example:
        loader, model_name, init, steps = datasets.EXAMPLES[args.example]
        observations = loader()
    else:
        observations = data_io.load_observations(args.data)
        model_name, init, steps = None, None, None
    model_name = args.model or model_name
    init = args.init or init
    steps = args.steps or steps
    if model_name is None or init is None or steps is None:
        raise ValueError("--model, --init and --steps are required with --data")
    _, names = models.get_model(model_name)
    step_cfg = build_config(init, steps, opts, names=names)
    alpha = float(config_mod.section(cfg, "report").get("alpha", 0.05))
    return model_name, observations, step_cfg, opts, alpha


def main(argv=None):
    args = parse_args(argv)
    log = get_logger("asymfit.fit", level_for(args.verbose))
    try:
        model_name, observations, step_cfg, opts, alpha = _setup(args)
    except (OSError, ValueError) as exc:
        log.error("configuration error: %s", exc)
        return 2

    result = run_fit(
        model_name,
        observations,
        step_cfg,
        method=str(opts.get("method", "migrad")),
        fallbacks=tuple(opts.get("fallbacks", ())),
    )
    for line in report.format_result(result, len(observations), verbose=args.verbose):
        print(line)
    if args.output:
        path = data_io.write_result_csv(Path(args.output), result, alpha)
        log.info("parameters written to %s", path)
    return 0 if result.success else 1

if __name__ == "__main__":
    raise SystemExit(main())
