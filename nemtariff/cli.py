from __future__ import annotations
import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from . import canon, formats, pricing
from .config import default_config
from .exceptions import NemTariffError
from .readers import Nem12Parser
from .tariffs import load_plan

logger = logging.getLogger("nemtariff")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nemtariff",
        description="Estimate average monthly electricity cost from a NEM12 file",
    )
    p.add_argument("nem12", help="Path to the NEM12 file")
    p.add_argument("--plan", required=True, help="Path to the plan document (JSON)")
    p.add_argument("--nmi", default=None, help="NMI to price when the file has several")
    p.add_argument("--tz", default=canon.DEFAULT_TZ, help="Timezone of the interval dates")
    p.add_argument("--usage-csv", default=None, help="Also write hourly usage to this CSV")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)

    cfg = default_config()
    cfg.parser.tz = args.tz
    try:
        parser = Nem12Parser(args.nem12, config=cfg.parser)
        usage = parser.parse()
        if args.usage_csv:
            formats.to_frame(usage, tz=args.tz).to_csv(args.usage_csv)
        plan = load_plan(args.plan)
        cost = pricing.calculate_monthly(
            usage, plan, nmi=args.nmi, config=cfg.calculator
        )
    except (NemTariffError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    json.dump(formats.cost_to_dict(cost), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0
