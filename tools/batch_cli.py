from __future__ import annotations
import argparse
from pathlib import Path

from batch.runner import run_batch
from infra import config as config_mod
from infra.logging import get_logger, level_for


def _floats(text: str) -> list[float]:
    try:
        return [float(tok) for tok in text.split(",") if tok.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated numbers, got {text!r}") from None

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Minimal batch CLI wrapper for Asymfit.")
    p.add_argument("--patterns", required=True, help="Glob(s) for input files; separate multiple with ';'")
    p.add_argument("--outdir", required=True, help="Output directory")
    p.add_argument("--config", help="JSON configuration file")
    p.add_argument("--model", help="Model name (default from config)")
    p.add_argument("--init", type=_floats, help="Initial values, comma separated")
    p.add_argument("--steps", type=_floats, help="Step sizes, comma separated")
    p.add_argument("--method", help="Minimizer (migrad|simplex)")
    p.add_argument("--strategy", type=int, choices=[0, 1, 2])
    p.add_argument("-v", "--verbose", action="store_true", default=False)
    return p.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    log = get_logger("asymfit.batch", level_for(args.verbose))
    patterns = [s.strip() for s in args.patterns.split(";") if s.strip()]
    out_dir = Path(args.outdir)
    out_dir.mkdir(parents=True, exist_ok=True)

    cfg = config_mod.load(args.config) if args.config else config_mod.defaults()
    batch = cfg.setdefault("batch", {})
    minimizer = cfg.setdefault("minimizer", {})
    for key in ("model", "init", "steps"):
        if getattr(args, key) is not None:
            batch[key] = getattr(args, key)
    if args.method is not None:
        minimizer["method"] = args.method
    if args.strategy is not None:
        minimizer["strategy"] = args.strategy
    batch["output"] = str(out_dir / Path(batch.get("output", "batch_summary.csv")).name)

    try:
        ok, processed = run_batch(patterns, cfg)
    except FileNotFoundError as exc:
        log.error("%s", exc)
        return 1
    except ValueError as exc:
        log.error("configuration error: %s", exc)
        return 2
    return 0 if ok > 0 and processed > 0 else 1

if __name__ == "__main__":
    raise SystemExit(main())
