"""
Command line entry point.

  ecotrack calc --car-km 8000 --air-hours 12 --kwh 250 --waste-kg 20 --diet medium
  ecotrack aqi --lat 52.52 --lon 13.40
  ecotrack trend
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from ecotrack.aqi import POLLUTANT_LABELS
from ecotrack.database import HistoryStore
from ecotrack.footprint import (
    DIET_FACTORS,
    GLOBAL_AVERAGE_T,
    breakdown,
    compare_to_average,
    compute_footprint,
    recommend,
    sanitize_inputs,
)
from ecotrack.history import derive_trend, goal_status, new_entry
from ecotrack.providers import (
    DEFAULT_RADIUS_M,
    OPENAQ_LATEST_URL,
    Geolocator,
    OpenAQClient,
    ProviderError,
    current_air_quality,
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="ecotrack", description="Carbon footprint and air quality tracker")
    p.add_argument("--db", default="ecotrack.db", help="SQLite DB path for the calculation history")
    p.add_argument("--log-level", default="INFO", help="Logging level")
    sub = p.add_subparsers(dest="command", required=True)

    calc = sub.add_parser("calc", help="Compute and save an annual footprint")
    # Kept as strings: sanitize_inputs() owns the coercion rules.
    calc.add_argument("--car-km", default="", help="Car travel (km/year)")
    calc.add_argument("--air-hours", default="", help="Air travel (hours/year)")
    calc.add_argument("--kwh", default="", help="Electricity (kWh/month)")
    calc.add_argument("--waste-kg", default="", help="Waste (kg/month)")
    calc.add_argument("--diet", default="medium", help=f"Diet type: {', '.join(DIET_FACTORS)}")
    calc.add_argument("--no-save", action="store_true", help="Do not append the result to the history")

    aqi = sub.add_parser("aqi", help="Show the AQI at the nearest monitoring station")
    aqi.add_argument("--lat", type=float, default=None, help="Latitude")
    aqi.add_argument("--lon", type=float, default=None, help="Longitude")
    aqi.add_argument("--no-ip-lookup", action="store_true", help="Never look up the location by IP")
    aqi.add_argument("--radius", type=int, default=DEFAULT_RADIUS_M, help="Search radius (meters)")
    aqi.add_argument("--api-key", default=os.getenv("OPENAQ_API_KEY"), help="OpenAQ API key")
    aqi.add_argument("--openaq-url", default=OPENAQ_LATEST_URL, help="OpenAQ latest-measurements endpoint")

    sub.add_parser("trend", help="Show progress over the saved history")
    return p.parse_args(argv)


def _fmt_t(value: float) -> str:
    return f"{value:.2f} t CO2e/yr"


def run_calc(args: argparse.Namespace) -> int:
    inputs = sanitize_inputs(
        {
            "car_km_per_year": args.car_km,
            "air_hours_per_year": args.air_hours,
            "electricity_kwh_per_month": args.kwh,
            "waste_kg_per_month": args.waste_kg,
            "diet": args.diet,
        }
    )
    result = compute_footprint(inputs)

    print(f"Total annual footprint: {_fmt_t(result.total)}")
    diff, side = compare_to_average(result.total)
    print(f"This is {side} the global average of {GLOBAL_AVERAGE_T} t/yr by {diff:.2f} t.")
    for name, value in breakdown(result):
        print(f"  {name}: {_fmt_t(value)}")
    print("Recommendations:")
    for line in recommend(result, inputs.diet):
        print(f"  - {line}")

    if not args.no_save:
        store = HistoryStore(args.db)
        store.initialize()
        entry = new_entry(inputs, result)
        store.append(entry)
        logging.info("Saved calculation %s -> %s", entry.id, args.db)
    return 0


def run_aqi(args: argparse.Namespace) -> int:
    locator = Geolocator(args.lat, args.lon, allow_lookup=not args.no_ip_lookup)
    client = OpenAQClient(base_url=args.openaq_url, api_key=args.api_key)
    try:
        location = locator.locate()
        station, result = current_air_quality(client, location, radius_m=args.radius)
    except ProviderError as e:
        logging.error("%s", e)
        return 1

    place = ", ".join(x for x in (station.city or station.name, station.country) if x) or "Unknown"
    print(f"Location: {place}")
    if result is None:
        print("AQI: no PM2.5/PM10 data at this station")
        return 0
    print(f"AQI: {result.index} ({result.label}) | Main pollutant: {POLLUTANT_LABELS[result.dominant_pollutant]}")
    print(f"  PM2.5: {result.pm25 if result.pm25 is not None else '-'} ug/m3")
    print(f"  PM10: {result.pm10 if result.pm10 is not None else '-'} ug/m3")
    return 0


def run_trend(args: argparse.Namespace) -> int:
    store = HistoryStore(args.db)
    stats = derive_trend(store.load())

    if not stats.has_trend:
        print("Add at least 2 calculations to see your progress over time.")
    else:
        for p in stats.series:
            print(
                f"  {p.date.isoformat()}  total={p.total:.2f}  transport={p.transport:.2f}  "
                f"energy={p.energy:.2f}  diet={p.diet:.2f}  waste={p.waste:.2f}"
            )

    latest = f"{stats.latest_total:.2f} t/yr" if stats.latest_total is not None else "-"
    change = f"{stats.percent_change:.1f}%" if stats.percent_change is not None else "-"
    print(f"Current footprint: {latest}")
    print(f"Total change: {change}")
    print(f"Paris goal ({stats.goal} t/yr): {goal_status(stats) or '-'}")
    return 0


COMMANDS = {
    "calc": run_calc,
    "aqi": run_aqi,
    "trend": run_trend,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
