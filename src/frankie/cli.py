"""Command-line entry point for frankie.

Example
-------
    frankie login -e you@example.com
    frankie status -o json
    frankie sites
    frankie prices --gas
    echo 'query Version { version }' | frankie api -
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import re
import sys
from typing import Any, Callable, Mapping, Sequence

from frankie import __version__
from frankie.api.client import FrankieClient
from frankie.api.errors import FrankieError
from frankie.api.queries import (
    BELGIUM_MARKET_PRICES_QUERY,
    CUSTOMER_MARKET_PRICES_QUERY,
    MARKET_PRICES_QUERY,
    ME_QUERY,
    USER_SITES_QUERY,
)
from frankie.auth.errors import NotLoggedInError
from frankie.auth.jwt import extract_email, parse_claims
from frankie.auth.service import AuthManager, AuthState
from frankie.auth.store import DiskCredentialStore
from frankie.config import COUNTRIES, OUTPUT_FORMATS, ConfigError, Settings
from frankie.errors import format_error
from frankie.output import print_json, print_key_values, print_table
from frankie.prices import (
    DEFAULT_RESOLUTION,
    PRICE_HEADERS,
    RESOLUTIONS,
    merge_prices,
    price_dates,
    price_rows,
    resolve_site_reference,
)
from frankie.utils.logging import setup_logging

_LOG = logging.getLogger("frankie.cli")

_OPERATION_RE = re.compile(r"(?:query|mutation)\s+(\w+)")

Command = Callable[[Settings, argparse.Namespace], int]

# --------------------------------------------------------------------------- #
# Wiring helpers                                                              #
# --------------------------------------------------------------------------- #


def _make_client(settings: Settings) -> FrankieClient:
    return FrankieClient.from_settings(settings)


def _make_manager(settings: Settings, client: FrankieClient) -> AuthManager:
    return AuthManager(client, DiskCredentialStore(settings.credentials_path))


# --------------------------------------------------------------------------- #
# Formatting helpers                                                          #
# --------------------------------------------------------------------------- #


def format_time_remaining(remaining: float) -> str:
    if remaining <= 0:
        return "expired"

    hours = remaining / 3600
    if hours >= 24:
        days = int(hours // 24)
        return "expires in 1 day" if days == 1 else f"expires in {days} days"
    if hours >= 1:
        return f"expires in {hours:.1f} hours"

    minutes = int(remaining // 60)
    return "expires in 1 minute" if minutes == 1 else f"expires in {minutes} minutes"


def _short_date(value: str | None) -> str:
    return (value or "")[:10]


def _first_address_line(address: Mapping[str, Any] | None) -> str:
    lines = (address or {}).get("addressFormatted") or []
    return lines[0] if lines else ""


def _fetch_sites(client: FrankieClient) -> list[Mapping[str, Any]]:
    try:
        response = client.execute(USER_SITES_QUERY, "UserSites")
    except FrankieError as exc:
        raise exc.with_context("failed to fetch sites")
    return response.data.get("userSites") or []


def _feature_status(feature: Mapping[str, Any] | None) -> str | None:
    if feature is None:
        return None
    if feature.get("isActivated"):
        return "Active"
    if feature.get("isAvailableInCountry"):
        return "Available"
    return "Not available"


# --------------------------------------------------------------------------- #
# Commands                                                                    #
# --------------------------------------------------------------------------- #


def cmd_login(settings: Settings, args: argparse.Namespace) -> int:
    email = args.email or input("Email: ").strip()
    password = args.password or getpass.getpass("Password: ")
    if not email or not password:
        raise FrankieError("email and password are required")

    with _make_client(settings) as client:
        _make_manager(settings, client).login(email, password)
    print("Login successful!")
    return 0


def cmd_logout(settings: Settings, args: argparse.Namespace) -> int:
    store = DiskCredentialStore(settings.credentials_path)
    if not store.exists():
        print("Not logged in")
        return 0
    with _make_client(settings) as client:
        AuthManager(client, store).logout()
    print("Logged out successfully")
    return 0


def cmd_status(settings: Settings, args: argparse.Namespace) -> int:
    store = DiskCredentialStore(settings.credentials_path)
    with _make_client(settings) as client:
        manager = AuthManager(client, store)
        state = manager.state()
        record = store.load() if state is not AuthState.NO_CREDENTIALS else None
        logged_in = manager.is_logged_in()

    if record is None:
        if settings.is_json:
            print_json({"logged_in": False})
            return 0
        print("Not logged in")
        print()
        print(f"Credentials file: {settings.credentials_path}")
        print()
        print("Run 'frankie login' to authenticate.")
        return 0

    claims = parse_claims(record.auth_token)
    expiry = claims.expires_at if claims else None
    remaining = claims.seconds_remaining() if claims else None
    email = extract_email(record.auth_token)

    if settings.is_json:
        info: dict[str, Any] = {"logged_in": logged_in}
        if email:
            info["email"] = email
        if expiry is not None:
            info["token_expiry"] = expiry.isoformat()
        if not logged_in:
            info["token_expired"] = True
        print_json(info)
        return 0

    if not logged_in:
        print("Session expired")
        print()
        print("Run 'frankie login' to authenticate.")
        return 0

    print("Logged in")
    print()
    pairs: dict[str, str] = {}
    if email:
        pairs["Email"] = email
    if remaining is not None:
        pairs["Token"] = format_time_remaining(remaining)
        if state is AuthState.EXPIRED_TOKEN:
            pairs["Token"] += " (renewed on next request)"
    if expiry is not None:
        pairs["Expiry"] = expiry.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    print_key_values(["Email", "Token", "Expiry"], pairs)
    return 0


def cmd_user(settings: Settings, args: argparse.Namespace) -> int:
    with _make_client(settings) as client:
        _make_manager(settings, client).ensure_authenticated()
        variables = {"siteReference": args.site} if args.site else None
        try:
            response = client.execute(ME_QUERY, "Me", variables)
        except FrankieError as exc:
            raise exc.with_context("failed to fetch user info")

    user: Mapping[str, Any] = response.data.get("me") or {}
    if settings.is_json:
        print_json(user)
        return 0

    details = user.get("externalDetails") or {}
    person = details.get("person") or {}
    name = f"{person.get('firstName') or ''} {person.get('lastName') or ''}".strip()
    payment = user.get("advancedPaymentAmount") or 0
    created = user.get("createdAt")

    pairs = {
        "Email": user.get("email"),
        "Name": name,
        "Country": user.get("countryCode"),
        "Address": _first_address_line(details.get("address")),
        "Trees": user.get("treesCount"),
        "CO2 Compensation": "Yes" if user.get("hasCO2Compensation") else "No",
        "Smart Charging": _feature_status(user.get("smartCharging")),
        "Smart Trading": _feature_status(user.get("smartTrading")),
        "Advanced Payment": f"€{payment:.2f}" if payment > 0 else None,
        "Member Since": _short_date(created) if created else None,
    }
    print_key_values(list(pairs), pairs)
    return 0


def cmd_sites(settings: Settings, args: argparse.Namespace) -> int:
    with _make_client(settings) as client:
        _make_manager(settings, client).ensure_authenticated()
        sites = _fetch_sites(client)

    if settings.is_json:
        print_json(sites)
        return 0
    if not sites:
        print("No sites found")
        return 0

    headers = ["Reference", "Address", "Status", "Segments", "Start", "Last Reading"]
    rows = [
        [
            site.get("reference"),
            _first_address_line(site.get("address")),
            site.get("status"),
            ", ".join(site.get("segments") or []),
            _short_date(site.get("deliveryStartDate")),
            _short_date(site.get("lastMeterReadingDate")),
        ]
        for site in sites
    ]
    print_table(headers, rows)
    return 0


def cmd_prices(settings: Settings, args: argparse.Namespace) -> int:
    dates = price_dates(args.date)
    results: list[Mapping[str, Any]] = []

    with _make_client(settings) as client:
        variables: dict[str, Any]
        if args.site:
            _make_manager(settings, client).ensure_authenticated()
            site_reference = resolve_site_reference(_fetch_sites(client), args.site)
            query, key = CUSTOMER_MARKET_PRICES_QUERY, "customerMarketPrices"
            context = "failed to fetch customer prices"
            variables = {"siteReference": site_reference}
        elif args.be or settings.country == "BE":
            client.set_country("BE")
            query, key = BELGIUM_MARKET_PRICES_QUERY, "marketPrices"
            context = "failed to fetch Belgium prices"
            variables = {}
        else:
            if args.resolution == 15:
                try:
                    _make_manager(settings, client).ensure_authenticated()
                except FrankieError as exc:
                    raise exc.with_context("15-minute resolution requires login")
            query, key = MARKET_PRICES_QUERY, "marketPrices"
            context = "failed to fetch prices"
            variables = {"resolution": RESOLUTIONS[args.resolution]}

        for date in dates:
            try:
                response = client.execute(query, "MarketPrices", {"date": date, **variables})
            except FrankieError as exc:
                raise exc.with_context(context)
            prices = response.data.get(key)
            if prices:
                results.append(prices)
            else:
                _LOG.debug("No prices published for %s", date)

    if not results:
        raise FrankieError("no prices available")
    merged = results[0] if len(results) == 1 else merge_prices(results)

    if settings.is_json:
        print_json(merged)
        return 0

    kind, field = ("Gas", "gasPrices") if args.gas else ("Electricity", "electricityPrices")
    entries = merged.get(field) or []
    if not entries:
        print(f"No {kind.lower()} prices available")
        return 0
    print(f"{kind} prices")
    print()
    print_table(PRICE_HEADERS, price_rows(entries))
    return 0


def cmd_api(settings: Settings, args: argparse.Namespace) -> int:
    if args.query in (None, "-"):
        query = sys.stdin.read().strip()
    else:
        query = args.query.strip()
    if not query:
        raise FrankieError("query is required")

    operation = args.op
    if not operation:
        match = _OPERATION_RE.search(query)
        operation = match.group(1) if match else ""

    variables: dict[str, Any] | None = None
    if args.var:
        try:
            variables = json.loads(args.var)
        except ValueError as exc:
            raise FrankieError(f"invalid variables JSON: {exc}") from exc
        if not isinstance(variables, dict):
            raise FrankieError("invalid variables JSON: expected an object")

    if args.debug:
        sys.stderr.write("Request:\n")
        print_json({"query": query, "operationName": operation, "variables": variables}, sys.stderr)
        sys.stderr.write("\n")

    with _make_client(settings) as client:
        try:
            _make_manager(settings, client).ensure_authenticated()
        except NotLoggedInError:
            _LOG.debug("No stored credentials, sending %s unauthenticated", operation or "query")
        try:
            payload = client.execute_raw(query, operation, variables)
        except FrankieError as exc:
            raise exc.with_context("query failed")

    print_json(payload)
    return 0


# --------------------------------------------------------------------------- #
# Parser                                                                      #
# --------------------------------------------------------------------------- #


def _common_options() -> argparse.ArgumentParser:
    # SUPPRESS lets the flags appear before or after the sub-command.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-o",
        "--output",
        choices=OUTPUT_FORMATS,
        default=argparse.SUPPRESS,
        help="output format (default: $FRANKIE_OUTPUT or table)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="verbose output",
    )
    common.add_argument(
        "--country",
        type=str.upper,
        choices=COUNTRIES,
        default=argparse.SUPPRESS,
        help="country of the account (default: $FRANKIE_COUNTRY or NL)",
    )
    common.add_argument(
        "--config-dir",
        default=argparse.SUPPRESS,
        help="directory holding credentials.json (default: ~/.config/frankie)",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="frankie",
        description="Command-line interface for the Frank Energie API.",
        parents=[common],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    login = sub.add_parser("login", parents=[common], help="authenticate with Frank Energie")
    login.add_argument("-e", "--email", default=None, help="email address")
    login.add_argument("-p", "--password", default=None, help="password (prompted when omitted)")
    login.set_defaults(handler=cmd_login)

    logout = sub.add_parser("logout", parents=[common], help="clear stored credentials")
    logout.set_defaults(handler=cmd_logout)

    status = sub.add_parser("status", parents=[common], help="show authentication status")
    status.set_defaults(handler=cmd_status)

    user = sub.add_parser("user", parents=[common], help="show user information")
    user.add_argument("--site", default=None, help="site reference for site-specific fields")
    user.set_defaults(handler=cmd_user)

    sites = sub.add_parser("sites", parents=[common], help="list delivery sites")
    sites.set_defaults(handler=cmd_sites)

    prices = sub.add_parser("prices", parents=[common], help="show electricity or gas market prices")
    prices.add_argument("-d", "--date", default=None, help="date to show prices for (YYYY-MM-DD, default: today)")
    prices.add_argument("--be", action="store_true", help="show Belgian prices instead of Dutch ones")
    prices.add_argument("-s", "--site", default=None, help="site reference for customer-specific prices")
    prices.add_argument("--gas", action="store_true", help="show gas prices instead of electricity")
    prices.add_argument(
        "-r",
        "--resolution",
        type=int,
        choices=sorted(RESOLUTIONS),
        default=DEFAULT_RESOLUTION,
        help="price resolution in minutes (15 requires login)",
    )
    prices.set_defaults(handler=cmd_prices)

    api = sub.add_parser("api", parents=[common], help="execute a raw GraphQL query")
    api.add_argument("query", nargs="?", default=None, help="GraphQL document, or '-' for stdin")
    api.add_argument("--op", default=None, help="operation name (auto-detected if omitted)")
    api.add_argument("--var", default=None, help="variables as a JSON object")
    api.add_argument("--debug", action="store_true", help="print the request JSON to stderr")
    api.set_defaults(handler=cmd_api)

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings.from_env().with_overrides(
        output=getattr(args, "output", None),
        country=getattr(args, "country", None),
        config_dir=getattr(args, "config_dir", None),
        verbose=True if getattr(args, "verbose", False) else None,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = _settings_from_args(args)
    except ConfigError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    setup_logging(settings.verbose)
    _LOG.debug("Using credentials file %s", settings.credentials_path)

    handler: Command = args.handler
    try:
        return handler(settings, args)
    except FrankieError as exc:
        sys.stderr.write(format_error(exc) + "\n")
        return 1
    except KeyboardInterrupt:
        sys.stderr.write("\n")
        return 130


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
