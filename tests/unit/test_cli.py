"""End-to-end tests of the ``frankie`` command line against a scripted session."""

from __future__ import annotations

import io
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

import frankie.cli as cli
from frankie.api.client import FrankieClient
from frankie.auth.clock import parse_iso_datetime
from frankie.auth.jwt import parse_expiration
from frankie.auth.models import Credentials
from frankie.auth.store import DiskCredentialStore

_ENV_VARS = ("FRANKIE_OUTPUT", "FRANKIE_VERBOSE", "FRANKIE_COUNTRY", "FRANKIE_CONFIG_DIR", "FRANKIE_API_URL")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _scripted_client(monkeypatch: pytest.MonkeyPatch, fake_session) -> None:
    monkeypatch.setattr(
        cli,
        "_make_client",
        lambda settings: FrankieClient(settings.api_url, country=settings.country, session=fake_session),
    )


@pytest.fixture()
def store(tmp_path: Path) -> DiskCredentialStore:
    return DiskCredentialStore(tmp_path / "credentials.json")


@pytest.fixture()
def run(tmp_path: Path) -> Callable[..., int]:
    def _run(*argv: str) -> int:
        return cli.main([*argv, "--config-dir", str(tmp_path)])

    return _run


def _seed(store: DiskCredentialStore, token: str) -> None:
    store.save(Credentials(auth_token=token, refresh_token="rt-1", expires_at=parse_expiration(token)))


def _future(seconds: int) -> int:
    return int(time.time()) + seconds


# --------------------------------------------------------------------------- #
# login / logout                                                              #
# --------------------------------------------------------------------------- #
def test_login_with_flags(run, fake_session, store, make_token, capsys) -> None:
    token = make_token(exp=_future(3_600))
    fake_session.queue_data({"login": {"authToken": token, "refreshToken": "rt-1"}})

    assert run("login", "-e", "jane@example.com", "-p", "secret") == 0

    assert "Login successful!" in capsys.readouterr().out
    assert fake_session.operations() == ["Login"]
    record = store.load()
    assert record is not None and record.auth_token == token


def test_login_prompts_for_missing_values(run, fake_session, store, make_token, monkeypatch) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt="": "  jane@example.com ")
    monkeypatch.setattr("frankie.cli.getpass.getpass", lambda prompt="": "secret")
    fake_session.queue_data({"login": {"authToken": make_token(exp=_future(60)), "refreshToken": "rt"}})

    assert run("login") == 0

    assert fake_session.calls[0]["json"]["variables"] == {"email": "jane@example.com", "password": "secret"}
    assert store.exists()


def test_login_requires_email_and_password(run, fake_session, monkeypatch, capsys) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt="": "")
    monkeypatch.setattr("frankie.cli.getpass.getpass", lambda prompt="": "")

    assert run("login") == 1

    assert "email and password are required" in capsys.readouterr().err
    assert fake_session.calls == []


def test_login_invalid_credentials_shows_hint(run, fake_session, store, capsys) -> None:
    fake_session.queue_status(200, {"errors": [{"message": "user-error:password-invalid"}]})

    assert run("login", "-e", "jane@example.com", "-p", "wrong") == 1

    err = capsys.readouterr().err
    assert "login failed: invalid credentials" in err
    assert "Hint: Check your credentials and try again" in err
    assert store.exists() is False


def test_logout_when_not_logged_in(run, capsys) -> None:
    assert run("logout") == 0
    assert "Not logged in" in capsys.readouterr().out


def test_logout_removes_credentials(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(3_600)))

    assert run("logout") == 0

    assert "Logged out successfully" in capsys.readouterr().out
    assert store.exists() is False
    assert fake_session.calls == []


# --------------------------------------------------------------------------- #
# status                                                                      #
# --------------------------------------------------------------------------- #
def test_status_not_logged_in(run, tmp_path, capsys) -> None:
    assert run("status") == 0

    out = capsys.readouterr().out
    assert "Not logged in" in out
    assert str(tmp_path / "credentials.json") in out


def test_status_not_logged_in_json(run, capsys) -> None:
    assert run("status", "-o", "json") == 0
    assert json.loads(capsys.readouterr().out) == {"logged_in": False}


def test_status_logged_in(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(3 * 86_400 + 3_600), email="jane@example.com"))

    assert run("status") == 0

    out = capsys.readouterr().out
    assert "Logged in" in out
    assert "jane@example.com" in out
    assert "expires in 3 days" in out
    assert fake_session.calls == []


def test_status_logged_in_json(run, store, make_token, capsys) -> None:
    exp = _future(86_400)
    _seed(store, make_token(exp=exp, sub="jane@example.com"))

    assert run("-o", "json", "status") == 0

    info = json.loads(capsys.readouterr().out)
    assert info == {
        "logged_in": True,
        "email": "jane@example.com",
        "token_expiry": datetime.fromtimestamp(exp, tz=timezone.utc).isoformat(),
    }


def test_status_expired(run, store, make_token, capsys) -> None:
    _seed(store, make_token(exp=_future(-60)))

    assert run("status") == 0
    assert "Session expired" in capsys.readouterr().out

    assert run("status", "-o", "json") == 0
    info = json.loads(capsys.readouterr().out)
    assert info["logged_in"] is False
    assert info["token_expired"] is True


# --------------------------------------------------------------------------- #
# user / sites                                                                #
# --------------------------------------------------------------------------- #
def test_sites_requires_login(run, fake_session, capsys) -> None:
    assert run("sites") == 1

    err = capsys.readouterr().err
    assert "not logged in" in err
    assert "Hint: Run 'frankie login' to authenticate" in err
    assert fake_session.calls == []


def test_sites_table(run, store, make_token, fake_session, capsys) -> None:
    token = make_token(exp=_future(86_400))
    _seed(store, token)
    fake_session.queue_data(
        {
            "userSites": [
                {
                    "reference": "1234AB 1",
                    "address": {"addressFormatted": ["Main St 1", "1234 AB City"]},
                    "status": "IN_DELIVERY",
                    "segments": ["ELECTRICITY", "GAS"],
                    "deliveryStartDate": "2022-01-01T00:00:00Z",
                    "lastMeterReadingDate": "2024-05-06",
                }
            ]
        }
    )

    assert run("sites") == 0

    out = capsys.readouterr().out
    for expected in ("Reference", "1234AB 1", "Main St 1", "IN_DELIVERY", "ELECTRICITY, GAS", "2022-01-01"):
        assert expected in out
    assert fake_session.calls[0]["headers"]["Authorization"] == f"Bearer {token}"


def test_sites_empty(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(86_400)))
    fake_session.queue_data({"userSites": []})
    fake_session.queue_data({"userSites": []})

    assert run("sites") == 0
    assert "No sites found" in capsys.readouterr().out

    assert run("sites", "-o", "json") == 0
    assert json.loads(capsys.readouterr().out) == []


def test_sites_network_failure(run, store, make_token, fake_session, network_down, capsys) -> None:
    _seed(store, make_token(exp=_future(86_400)))
    fake_session.queue(network_down)

    assert run("sites") == 1

    err = capsys.readouterr().err
    assert err.startswith("failed to fetch sites: network error: ")
    assert "Hint: Check your internet connection" in err


def test_user_details(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(86_400)))
    fake_session.queue_data(
        {
            "me": {
                "email": "jane@example.com",
                "countryCode": "NL",
                "externalDetails": {
                    "person": {"firstName": "Jane", "lastName": "Doe"},
                    "address": {"addressFormatted": ["Main St 1", "1234 AB City"]},
                },
                "treesCount": 3,
                "hasCO2Compensation": True,
                "smartTrading": {"isActivated": False, "isAvailableInCountry": True},
                "advancedPaymentAmount": 120.5,
                "createdAt": "2021-03-04T10:00:00Z",
            }
        }
    )

    assert run("user", "--site", "1234AB 1") == 0

    out = capsys.readouterr().out
    for expected in ("Jane Doe", "Main St 1", "Available", "€120.50", "2021-03-04"):
        assert expected in out
    assert "Smart Charging" not in out
    assert fake_session.calls[0]["json"]["variables"] == {"siteReference": "1234AB 1"}


def test_user_smart_trading_error(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(86_400)))
    fake_session.queue_status(200, {"errors": [{"message": "user-error:smart-trading-not-enabled"}]})

    assert run("user") == 1

    err = capsys.readouterr().err
    assert "failed to fetch user info: smart trading is not enabled for this user" in err
    assert "Hint: Enable smart trading" in err


# --------------------------------------------------------------------------- #
# api                                                                         #
# --------------------------------------------------------------------------- #
def test_api_reads_stdin_without_login(run, fake_session, monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("query Version { version }\n"))
    fake_session.queue_data({"version": "1.0"})

    assert run("api") == 0

    assert json.loads(capsys.readouterr().out) == {"data": {"version": "1.0"}}
    call = fake_session.calls[0]
    assert call["json"]["operationName"] == "Version"
    assert "Authorization" not in call["headers"]


def test_api_with_variables_and_debug(run, store, make_token, fake_session, capsys) -> None:
    token = make_token(exp=_future(86_400))
    _seed(store, token)
    fake_session.queue_data({"me": {"id": "u1"}})

    assert run("api", "query Me($x: String) { me { id } }", "--op", "Custom", "--var", '{"x": "y"}', "--debug") == 0

    captured = capsys.readouterr()
    assert captured.err.startswith("Request:\n")
    assert '"operationName": "Custom"' in captured.err
    call = fake_session.calls[0]
    assert call["json"]["variables"] == {"x": "y"}
    assert call["headers"]["Authorization"] == f"Bearer {token}"


def test_api_prints_graphql_errors(run, fake_session, capsys) -> None:
    body = {"data": None, "errors": [{"message": "user-error:auth-required"}]}
    fake_session.queue_status(200, body)

    assert run("api", "query Me { me { id } }") == 0
    assert json.loads(capsys.readouterr().out) == body


@pytest.mark.parametrize("variables", ["{broken", "[1, 2]"])
def test_api_rejects_bad_variables(run, fake_session, capsys, variables: str) -> None:
    assert run("api", "query Me { me { id } }", "--var", variables) == 1

    assert "invalid variables JSON" in capsys.readouterr().err
    assert fake_session.calls == []


def test_api_http_failure(run, fake_session, capsys) -> None:
    fake_session.queue_status(503, None, text="unavailable")

    assert run("api", "query Version { version }") == 1

    err = capsys.readouterr().err
    assert "query failed: server error" in err
    assert "Hint: Frank Energie API may be temporarily unavailable" in err


# --------------------------------------------------------------------------- #
# settings / misc                                                             #
# --------------------------------------------------------------------------- #
def test_country_flag_sends_header(run, fake_session, monkeypatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("query Version { version }"))
    fake_session.queue_data({"version": "1.0"})

    assert run("api", "-", "--country", "be") == 0
    assert fake_session.calls[0]["headers"]["x-country"] == "BE"


def test_invalid_env_config_exits_2(run, monkeypatch, capsys) -> None:
    monkeypatch.setenv("FRANKIE_COUNTRY", "DE")

    assert run("status") == 2
    assert "unsupported country" in capsys.readouterr().err


def test_version_flag(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])
    assert excinfo.value.code == 0
    assert "frankie" in capsys.readouterr().out


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (-5, "expired"),
        (0, "expired"),
        (30, "expires in 0 minutes"),
        (60, "expires in 1 minute"),
        (59 * 60, "expires in 59 minutes"),
        (90 * 60, "expires in 1.5 hours"),
        (86_400, "expires in 1 day"),
        (3 * 86_400 + 5, "expires in 3 days"),
    ],
)
def test_format_time_remaining(seconds: int, expected: str) -> None:
    assert cli.format_time_remaining(seconds) == expected


# --------------------------------------------------------------------------- #
# status: edge cases                                                          #
# --------------------------------------------------------------------------- #
def test_status_within_refresh_margin(run, store, make_token, capsys) -> None:
    _seed(store, make_token(exp=_future(150)))

    assert run("status") == 0

    out = capsys.readouterr().out
    assert "Logged in" in out
    assert "(renewed on next request)" in out


def test_status_unreadable_credentials_file(run, store, capsys) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_bytes(b"\xff\xfe garbage")

    assert run("status") == 1
    assert "failed to parse credentials" in capsys.readouterr().err


def test_failed_refresh_still_closes_session(run, store, make_token, fake_session) -> None:
    _seed(store, make_token(exp=_future(-60)))
    fake_session.queue_status(200, {"errors": [{"message": "user-error:auth-required"}]})

    assert run("sites") == 1

    assert fake_session.operations() == ["RenewToken"]
    assert fake_session.closed is True


# --------------------------------------------------------------------------- #
# prices                                                                      #
# --------------------------------------------------------------------------- #
_ELECTRICITY = {
    "from": "2024-05-06T10:00:00.000Z",
    "till": "2024-05-06T11:00:00.000Z",
    "marketPrice": 0.1,
    "marketPriceTax": 0.021,
    "sourcingMarkupPrice": 0.02,
    "energyTaxPrice": 0.109,
    "allInPrice": 0.26,
}
_GAS = {
    "from": "2024-05-06T04:00:00.000Z",
    "till": "2024-05-07T04:00:00.000Z",
    "marketPrice": 0.3,
    "marketPriceTax": 0.063,
    "sourcingMarkupPrice": 0.05,
    "energyTaxPrice": 0.587,
    "allInPrice": 0,
}


def _market(electricity: list | None = None, gas: list | None = None) -> dict:
    return {"electricityPrices": electricity or [], "gasPrices": gas or []}


def test_prices_public_electricity_table(run, fake_session, capsys) -> None:
    fake_session.queue_data({"marketPrices": _market([_ELECTRICITY], [_GAS])})

    assert run("prices", "-d", "2024-05-06") == 0

    out = capsys.readouterr().out
    start = parse_iso_datetime(_ELECTRICITY["from"]).astimezone()
    assert out.startswith("Electricity prices\n")
    for expected in ("Market", "All-In", start.strftime("%H:%M"), "€0.1000", "€0.2500", "€0.2600"):
        assert expected in out
    call = fake_session.calls[0]
    assert call["json"]["operationName"] == "MarketPrices"
    assert call["json"]["variables"] == {"date": "2024-05-06", "resolution": "PT60M"}
    assert "Authorization" not in call["headers"]
    assert "x-country" not in call["headers"]


def test_prices_gas_falls_back_to_total(run, fake_session, capsys) -> None:
    fake_session.queue_data({"marketPrices": _market([_ELECTRICITY], [_GAS])})

    assert run("prices", "-d", "2024-05-06", "--gas") == 0

    out = capsys.readouterr().out
    assert out.startswith("Gas prices\n")
    assert out.count("€1.0000") == 2  # total and all-in


def test_prices_json(run, fake_session, capsys) -> None:
    payload = _market([_ELECTRICITY], [_GAS])
    fake_session.queue_data({"marketPrices": payload})

    assert run("prices", "-d", "2024-05-06", "-o", "json") == 0
    assert json.loads(capsys.readouterr().out) == payload


def test_prices_merges_multiple_days(run, fake_session, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "price_dates", lambda date=None: ["2024-05-06", "2024-05-07"])
    fake_session.queue_data({"marketPrices": _market([_ELECTRICITY])})
    fake_session.queue_data({"marketPrices": _market([_ELECTRICITY], [_GAS])})

    assert run("prices", "-o", "json") == 0

    merged = json.loads(capsys.readouterr().out)
    assert merged == {"electricityPrices": [_ELECTRICITY, _ELECTRICITY], "gasPrices": [_GAS]}
    assert [c["json"]["variables"]["date"] for c in fake_session.calls] == ["2024-05-06", "2024-05-07"]


def test_prices_belgium(run, fake_session) -> None:
    fake_session.queue_data({"marketPrices": _market([_ELECTRICITY])})

    assert run("prices", "-d", "2024-05-06", "--be") == 0

    call = fake_session.calls[0]
    assert call["headers"]["x-country"] == "BE"
    assert call["json"]["variables"] == {"date": "2024-05-06"}
    assert "$resolution" not in call["json"]["query"]


def test_prices_quarter_hour_requires_login(run, fake_session, capsys) -> None:
    assert run("prices", "-d", "2024-05-06", "-r", "15") == 1

    err = capsys.readouterr().err
    assert "15-minute resolution requires login: not logged in" in err
    assert fake_session.calls == []


def test_prices_quarter_hour_with_login(run, store, make_token, fake_session) -> None:
    token = make_token(exp=_future(86_400))
    _seed(store, token)
    fake_session.queue_data({"marketPrices": _market([_ELECTRICITY])})

    assert run("prices", "-d", "2024-05-06", "-r", "15") == 0

    call = fake_session.calls[0]
    assert call["json"]["variables"]["resolution"] == "PT15M"
    assert call["headers"]["Authorization"] == f"Bearer {token}"


def test_prices_for_site(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(86_400)))
    fake_session.queue_data({"userSites": [{"reference": "1234AB 1"}, {"reference": "5678CD 2"}]})
    fake_session.queue_data({"customerMarketPrices": _market([_ELECTRICITY])})

    assert run("prices", "-d", "2024-05-06", "--site", "1234ab") == 0

    assert fake_session.operations() == ["UserSites", "MarketPrices"]
    assert fake_session.calls[1]["json"]["variables"] == {"date": "2024-05-06", "siteReference": "1234AB 1"}
    assert "customerMarketPrices" in fake_session.calls[1]["json"]["query"]
    assert "Electricity prices" in capsys.readouterr().out


def test_prices_for_unknown_site(run, store, make_token, fake_session, capsys) -> None:
    _seed(store, make_token(exp=_future(86_400)))
    fake_session.queue_data({"userSites": [{"reference": "1234AB 1"}, {"reference": "5678CD 2"}]})

    assert run("prices", "-d", "2024-05-06", "--site", "9999") == 1

    assert "no site found matching '9999'" in capsys.readouterr().err
    assert fake_session.operations() == ["UserSites"]


def test_prices_none_published(run, fake_session, capsys) -> None:
    fake_session.queue_data({"marketPrices": None})

    assert run("prices", "-d", "2024-05-06") == 1
    assert "no prices available" in capsys.readouterr().err


def test_prices_rejects_bad_date(run, fake_session, capsys) -> None:
    assert run("prices", "-d", "06-05-2024") == 1

    assert "invalid date '06-05-2024'" in capsys.readouterr().err
    assert fake_session.calls == []
