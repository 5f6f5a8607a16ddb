#!/usr/bin/env python3
"""
Fax Drop Simulator
Fylder en drop mappe med testfiler til prune og error-retry scans:
gamle filer uden extension, .error filer, og filer der skal overleve.
Cache expiry måler på oprettelsestid og kan ikke simuleres her.
"""
import argparse
import logging
import os
import random
from datetime import datetime, timedelta
from pathlib import Path

# Konfiguration variabler
DEFAULT_DROP_FOLDER = "sim/drop"
DEFAULT_CACHE_FOLDER = "sim/cache"
DEFAULT_STALE_COUNT = 3
DEFAULT_ERROR_COUNT = 3
DEFAULT_STALE_AGE_HOURS = 12


def fax_envelope(sequence: int) -> str:
    """Genererer et minimalt fax envelope med sender/receiver headers"""
    return (
        f"x-sender: user{sequence}@example.com\n"
        f"x-receiver: +45{random.randint(10000000, 99999999)}\n"
        f"Subject: Simulated fax {sequence}\n"
        "\n"
        "Simulated fax body\n"
    )


def write_aged_file(path: Path, content: str, age: timedelta) -> None:
    path.write_text(content, encoding="utf-8")
    timestamp = (datetime.now() - age).timestamp()
    os.utime(path, (timestamp, timestamp))
    logging.info(f"Oprettet {path} (alder {age})")


def populate(drop_folder: Path, cache_folder: Path, stale_count: int, error_count: int, stale_age_hours: float) -> None:
    drop_folder.mkdir(parents=True, exist_ok=True)
    cache_folder.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%y%m%d_%H%M%S")

    for i in range(stale_count):
        write_aged_file(
            drop_folder / f"FAX_{stamp}_{i}",
            fax_envelope(i),
            timedelta(hours=stale_age_hours),
        )

    for i in range(error_count):
        write_aged_file(
            drop_folder / f"FAX_{stamp}_err{i}.error",
            fax_envelope(100 + i),
            timedelta(0),
        )

    # Nye filer prunes ikke; de viser at aldersgrænsen virker
    write_aged_file(drop_folder / f"FAX_{stamp}_fresh", fax_envelope(999), timedelta(0))
    write_aged_file(drop_folder / f"FAX_{stamp}_queued.eml", fax_envelope(998), timedelta(days=2))


def main():
    parser = argparse.ArgumentParser(
        description="Simulerer RightFax drop mappe med gamle og fejlede faxer"
    )
    parser.add_argument(
        "--drop-folder",
        default=DEFAULT_DROP_FOLDER,
        help="Drop mappe (default: %(default)s)",
    )
    parser.add_argument(
        "--cache-folder",
        default=DEFAULT_CACHE_FOLDER,
        help="Error cache mappe (default: %(default)s)",
    )
    parser.add_argument(
        "--stale-count",
        type=int,
        default=DEFAULT_STALE_COUNT,
        help="Antal gamle filer uden extension (default: %(default)s)",
    )
    parser.add_argument(
        "--error-count",
        type=int,
        default=DEFAULT_ERROR_COUNT,
        help="Antal .error filer (default: %(default)s)",
    )
    parser.add_argument(
        "--stale-age-hours",
        type=float,
        default=DEFAULT_STALE_AGE_HOURS,
        help="Alder på de gamle filer i timer (default: %(default)s)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    populate(
        drop_folder=Path(args.drop_folder),
        cache_folder=Path(args.cache_folder),
        stale_count=args.stale_count,
        error_count=args.error_count,
        stale_age_hours=args.stale_age_hours,
    )
    logging.info("Drop mappe klar. Kør POST /api/scans/<scan>/run for at se resultatet.")


if __name__ == "__main__":
    main()
