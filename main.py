# main.py

import argparse
import json
import logging
import sys
import time

from hostscan import discover
from hostscan.config import DEFAULT_PROBE_METHOD, DEFAULT_TIMEOUT_MS, LOG_FORMAT, PROBE_METHODS
from hostscan.engine import ScanEngine
from hostscan.reporting import create_report_data, print_result, progress_bar, sort_records

# Ensure a reasonable width for the final report separators
total_width = 70


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Discover live hosts on a local IPv4 subnet.")
    parser.add_argument("cidr", nargs="?", help="Subnet to scan, e.g. 192.168.1.0/24 (default: local /24).")
    parser.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_MS,
                        help=f"Per-host probe timeout in milliseconds (default: {DEFAULT_TIMEOUT_MS}).")
    parser.add_argument("--method", choices=PROBE_METHODS, default=DEFAULT_PROBE_METHOD,
                        help="Reachability check: ICMP echo, TCP connect, or ICMP with TCP fallback.")
    parser.add_argument("--interval", type=float, default=0.5, help="Seconds between progress polls.")
    parser.add_argument("--all", action="store_true", help="Also list hosts that did not answer.")
    parser.add_argument("--json", action="store_true", help="Print the final report as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def wait_for_scan(engine, job_id, interval, show_progress=True):
    """Polls the engine until the job is finished and returns the final progress."""
    while True:
        progress = engine.progress(job_id)
        if show_progress:
            sys.stdout.write(f"\r  {progress_bar(progress.percent)} ({progress.completed}/{progress.total})")
            sys.stdout.flush()
        if progress.finished:
            if show_progress:
                sys.stdout.write("\n")
            return progress
        time.sleep(interval)


def main(argv=None):
    """
    Scans a subnet in the background, showing progress while polling,
    then prints the discovered hosts sorted by address.
    """
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    cidr = args.cidr
    if not cidr:
        cidr = discover.local_subnet()
        if not cidr:
            print("\n[!] Cannot determine the local subnet. Pass one explicitly, e.g. 192.168.1.0/24.")
            return 1

    if not args.json:
        print("=" * total_width)
        print(f"Host Discovery - {cidr} (timeout {args.timeout}ms, method {args.method})")
        print("=" * total_width)

    with ScanEngine() as engine:
        job_id = engine.start(cidr, args.timeout, args.method)
        progress = wait_for_scan(engine, job_id, args.interval, show_progress=not args.json)

    if args.json:
        print(json.dumps(create_report_data(cidr, progress.records), indent=4))
        return 0

    records = sort_records(progress.records)
    hosts_up = [record for record in records if record.reachable]
    shown = records if args.all else hosts_up

    print("-" * total_width)
    print(f"{'IP Address':<18}{'Latency':<8}{'Hostname':<33}{'Status':<8}")
    print("-" * total_width)
    for record in shown:
        print_result(record.address, record.latency_ms, record.hostname, "up" if record.reachable else "down")

    print("-" * total_width)
    print(f"Hosts up: {len(hosts_up)} of {progress.total} scanned.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
