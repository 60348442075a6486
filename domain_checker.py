#!/usr/bin/env python
"""
Bulk Domain Checker
-------------------
Takes a list of base names, appends each extension from a fixed set and
guesses whether every resulting hostname is taken or still available.

Check methods:
1. dns  - single resolver lookup, any failure counts as available
2. http - HTTP HEAD request, no answer counts as available
3. vote - WHOIS, DNS, socket and HTTP vote; RDAP is asked when none of them
          gives a decisive answer

None of this is an authoritative registry check. A name that does not
resolve may still be registered, and a network outage looks exactly like a
free domain.
"""

import whois
import socket
import dns.resolver
import requests
import re
import time
import csv
import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from tqdm import tqdm

import config
from models import ProbeStatus, ProbeResult, AggregateResult

logger = logging.getLogger(__name__)

RDAP_URL = 'https://rdap.org/domain/{}'

PROTOCOLS = ['http://', 'https://', 'ftp://', 'ftps://']

LABEL_PATTERN = re.compile(r'^([a-z0-9]|[a-z0-9][a-z0-9\-]{0,61}[a-z0-9])$')


def check_domain_whois(domain, timeout=None):
    """
    Check domain availability using WHOIS lookup.
    Returns True if domain appears to be available, False otherwise.
    """
    timeout = timeout if timeout is not None else config.WHOIS_TIMEOUT
    try:
        w = whois.whois(domain, timeout=timeout)
        # If no domain name or registrar, domain might be available
        if w.domain_name is None or w.registrar is None:
            return True
        return False
    except Exception as e:
        # If WHOIS query fails with a specific error indicating no match, domain might be available
        if "No match for" in str(e) or "No entries found" in str(e):
            return True
        # For other errors, we can't determine availability
        return None


def check_domain_dns(domain, timeout=None):
    """
    Check domain availability using an A record query.
    Returns True if domain appears to be available, False otherwise.
    """
    try:
        resolver = dns.resolver.Resolver()
        resolver.lifetime = timeout if timeout is not None else config.DNS_TIMEOUT
        resolver.resolve(domain, 'A')
        # If resolution succeeds, domain is registered and has DNS records
        return False
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        # NXDOMAIN means the domain doesn't exist in DNS, suggesting it's available
        return True
    except Exception:
        # Timeouts, SERVFAIL, no nameservers: can't determine availability
        return None


def check_domain_socket(domain):
    """
    Check domain availability using the system resolver.
    Returns True if domain appears to be available, False otherwise.
    """
    try:
        socket.getaddrinfo(domain, None)
        return False
    except socket.gaierror:
        return True
    except Exception:
        return None


def check_domain_http(domain, timeout=None):
    """
    Check whether anything answers HTTP(S) for the domain.
    Any response at all, whatever its status code, means the name is taken.
    """
    timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
    for scheme in ('https', 'http'):
        try:
            requests.head(f'{scheme}://{domain}', timeout=timeout, allow_redirects=True)
            return False
        except requests.RequestException:
            continue
    return True


def check_domain_rdap(domain, timeout=None):
    """
    Ask the public RDAP redirector about the domain.
    404 means no registration record, 200 means registered.
    """
    timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
    try:
        response = requests.get(
            RDAP_URL.format(domain),
            headers={'Accept': 'application/rdap+json'},
            timeout=timeout,
        )
    except requests.RequestException:
        return None
    if response.status_code == 404:
        return True
    if response.status_code == 200:
        return False
    # 429, 5xx or a registry without RDAP
    return None


def _vote(domain):
    results = {}

    for name, probe in (('whois', check_domain_whois),
                        ('dns', check_domain_dns),
                        ('socket', check_domain_socket),
                        ('http', check_domain_http)):
        result = probe(domain)
        if result is not None:
            results[name] = result

    if not results:
        rdap_result = check_domain_rdap(domain)
        if rdap_result is None:
            return ProbeResult(domain, ProbeStatus.UNKNOWN)
        results['rdap'] = rdap_result

    # Count available results
    available_count = sum(1 for result in results.values() if result)
    confidence = (available_count / len(results)) * 100

    # Domain is considered available if at least half of the methods say so
    status = ProbeStatus.AVAILABLE if confidence >= 50 else ProbeStatus.TAKEN
    return ProbeResult(domain, status, methods=list(results), confidence=confidence)


def check_domain(domain, method=None):
    """
    Probe one full hostname with the given check method.
    Returns a ProbeResult.
    """
    method = method or config.CHECK_METHOD

    if method == 'dns':
        # Bounded by the resolver lifetime; failure of any kind is read as "available"
        taken = check_domain_dns(domain) is False
        result = ProbeResult(domain, ProbeStatus.TAKEN if taken else ProbeStatus.AVAILABLE, methods=['dns'])
    elif method == 'http':
        taken = check_domain_http(domain) is False
        result = ProbeResult(domain, ProbeStatus.TAKEN if taken else ProbeStatus.AVAILABLE, methods=['http'])
    elif method == 'vote':
        result = _vote(domain)
    else:
        raise ValueError(f"Unknown check method: {method}")

    logger.debug("%s -> %s (%s)", domain, result.status.value, ', '.join(result.methods))
    return result


def strip_protocols(url):
    """Strip common protocols from URLs."""
    for protocol in PROTOCOLS:
        if url.startswith(protocol):
            url = url[len(protocol):]

    # Also remove any trailing path or query parameters
    url = url.split('/', 1)[0].split('?', 1)[0]

    return url


def clean_base_name(raw, extensions=None):
    """
    Reduce user input like "https://www.Example.co.in/about" to "example".
    Returns an empty string for blank input.
    """
    extensions = extensions if extensions is not None else config.EXTENSIONS

    name = strip_protocols(raw.strip().lower())
    # "www.net" is the name "www" under .net, not a www prefix
    if name.startswith('www.') and f".{name[4:].strip('.')}" not in extensions:
        name = name[4:]
    name = name.strip('.')
    if not name:
        return ''

    # Longest first so that ".co.in" wins over ".in"
    for ext in sorted(extensions, key=len, reverse=True):
        if name.endswith(ext) and len(name) > len(ext):
            return name[:-len(ext)]

    # Remove any other TLD if present
    if '.' in name:
        parts = name.split('.')
        if parts[-1].isalpha() and 2 <= len(parts[-1]) <= 6:
            name = '.'.join(parts[:-1])

    return name


def is_valid_label(name):
    """Check that a base name can be used as a single hostname label."""
    return bool(LABEL_PATTERN.match(name))


def expand_domains(base_names, extensions=None):
    """
    Build the (base name, full domain) cross-product.
    Returns a tuple of (pairs, invalid names). Blank names are dropped.
    """
    extensions = extensions if extensions is not None else config.EXTENSIONS

    pairs = []
    invalid = []
    seen = set()

    for raw in base_names:
        base_name = clean_base_name(raw, extensions)
        # Skip empty names
        if not base_name:
            continue
        if not is_valid_label(base_name):
            invalid.append(raw.strip())
            continue
        if base_name in seen:
            continue
        seen.add(base_name)

        for ext in extensions:
            pairs.append((base_name, f"{base_name}{ext}"))

    return pairs, invalid


def process_domain_list(base_names, extensions=None, method=None, max_workers=None,
                        batch_size=None, batch_delay=None, progress=False):
    """
    Process a list of base names, checking availability for each with every extension.
    Returns a tuple of (list of AggregateResult, invalid names).
    """
    extensions = extensions if extensions is not None else config.EXTENSIONS
    method = method or config.CHECK_METHOD
    max_workers = max_workers or config.MAX_WORKERS
    batch_size = max(1, batch_size or config.BATCH_SIZE)
    batch_delay = config.BATCH_DELAY if batch_delay is None else batch_delay

    if method not in config.CHECK_METHODS:
        raise ValueError(f"Unknown check method: {method}")

    pairs, invalid = expand_domains(base_names, extensions)
    results = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor, \
            tqdm(total=len(pairs), desc="Checking domains", disable=not progress) as pbar:
        for start in range(0, len(pairs), batch_size):
            # Give resolvers and web servers a breather between batches
            if start and batch_delay:
                time.sleep(batch_delay)

            batch = pairs[start:start + batch_size]
            future_to_index = {
                executor.submit(check_domain, domain, method): index
                for index, (_, domain) in enumerate(batch, start)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception:
                    domain = pairs[index][1]
                    logger.exception("Probe for %s failed", domain)
                    results[index] = ProbeResult(domain, ProbeStatus.ERROR)
                pbar.update(1)

    # Group by base name, keeping input and extension order
    grouped = {}
    for index, (base_name, _) in enumerate(pairs):
        if base_name not in grouped:
            grouped[base_name] = AggregateResult(base_name)
        grouped[base_name].extensions.append(results[index])

    return list(grouped.values()), invalid


def summarize(aggregates):
    """Count verdicts across all aggregates."""
    summary = {'total': 0}
    for status in ProbeStatus:
        summary[status.value] = 0
    for aggregate in aggregates:
        for result in aggregate.extensions:
            summary['total'] += 1
            summary[result.status.value] += 1
    return summary


def save_results_to_csv(aggregates, output_file):
    """Save domain availability results to a CSV file."""
    with open(output_file, 'w', newline='', encoding='utf-8') as csvfile:
        fieldnames = ['base', 'domain', 'status', 'confidence', 'methods']
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)

        writer.writeheader()
        for aggregate in aggregates:
            for result in aggregate.extensions:
                writer.writerow({
                    'base': aggregate.base_domain,
                    'domain': result.domain,
                    'status': result.status.value,
                    'confidence': '' if result.confidence is None else f"{result.confidence:.1f}",
                    'methods': ', '.join(result.methods),
                })


def print_results(aggregates):
    """Print domain availability results to the console."""
    results = [r for aggregate in aggregates for r in aggregate.extensions]
    available_domains = [r for r in results if r.available]
    taken_domains = [r for r in results if r.status == ProbeStatus.TAKEN]
    undecided_domains = [r for r in results if r.status in (ProbeStatus.UNKNOWN, ProbeStatus.ERROR)]

    print("\n===== AVAILABLE DOMAINS =====")
    if available_domains:
        for result in available_domains:
            print(_format_line(result))
    else:
        print("No available domains found.")

    print("\n===== TAKEN DOMAINS =====")
    if taken_domains:
        for result in taken_domains:
            print(_format_line(result))
    else:
        print("No taken domains found.")

    if undecided_domains:
        print("\n===== UNDECIDED =====")
        for result in undecided_domains:
            print(f"{result.domain} - {result.status.value}")


def _format_line(result):
    line = f"{result.domain} - Methods: {', '.join(result.methods)}"
    if result.confidence is not None:
        line += f" - Confidence: {result.confidence:.1f}%"
    return line


def main(argv=None):
    parser = argparse.ArgumentParser(description='Check domain name availability in bulk.')
    parser.add_argument('--input', '-i', help='Input file with base names (one per line)')
    parser.add_argument('--output', '-o', help='Output CSV file for results')
    parser.add_argument('--tlds', '-t',
                        help=f"Comma-separated list of extensions to check (default: {','.join(config.EXTENSIONS)})")
    parser.add_argument('--domains', '-d', nargs='+', help='List of base names to check')
    parser.add_argument('--method', '-m', choices=config.CHECK_METHODS, default=config.CHECK_METHOD,
                        help=f"Check method (default: {config.CHECK_METHOD})")
    parser.add_argument('--workers', '-w', type=int, default=config.MAX_WORKERS,
                        help=f"Number of worker threads (default: {config.MAX_WORKERS})")

    args = parser.parse_args(argv)

    # Get base names from input file or command line arguments
    base_names = []
    if args.input:
        try:
            with open(args.input, 'r', encoding='utf-8') as f:
                base_names = [line.strip() for line in f if line.strip()]
        except OSError as e:
            print(f"Error reading input file: {e}", file=sys.stderr)
            return 1
    elif args.domains:
        base_names = args.domains
    else:
        print("Please provide base names using --input or --domains", file=sys.stderr)
        return 1

    extensions = config.EXTENSIONS
    if args.tlds:
        extensions = config.parse_extensions(args.tlds)

    print(f"Checking {len(base_names)} base names with {len(extensions)} extensions...")

    aggregates, invalid = process_domain_list(base_names, extensions, args.method,
                                              max_workers=args.workers, progress=True)

    for name in invalid:
        print(f"Skipped invalid name: {name}", file=sys.stderr)

    if args.output:
        save_results_to_csv(aggregates, args.output)
        print(f"Results saved to {args.output}")

    print_results(aggregates)

    return 0


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    sys.exit(main())
