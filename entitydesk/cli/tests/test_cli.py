"""CLI tests -- argument parsing, the credential store, and list/export runs."""

from __future__ import annotations

import asyncio
import io
import json
import stat

import httpx
import jwt
import pytest
from openpyxl import load_workbook

from entitydesk.api.client import CollectionClient
from entitydesk.cli.auth import logout, register
from entitydesk.cli.config import DEFAULT_API_URL, Config
from entitydesk.cli.main import parse_args, run_collection, run_dashboard

API_URL = "http://desk.test/api"

# ============================================================================
# Helpers
# ============================================================================


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("ENTITYDESK_API_URL", raising=False)
    return Config(api_url_override=API_URL, config_dir=tmp_path / ".entitydesk")


@pytest.fixture
def served(monkeypatch):
    """Route every CollectionClient the CLI opens to an in-memory transection list."""
    records = [
        {"id": 1, "type": "income", "category": "service", "title": "Haircut", "amount": 300, "occurredAt": "2024-03-01T03:00:00Z"},
        {"id": 2, "type": "expense", "category": "rent", "title": "Rent", "amount": 9000, "occurredAt": "2024-03-02T03:00:00Z"},
        {"id": 3, "type": "income", "category": "service", "title": "Colour", "amount": 1200, "occurredAt": "2024-03-03T03:00:00Z"},
    ]
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=records)

    original_init = CollectionClient.__init__

    def patched_init(self, api_url, session=None, timeout=30.0, transport=None):
        original_init(self, api_url, session, timeout, httpx.MockTransport(handler))

    monkeypatch.setattr(CollectionClient, "__init__", patched_init)
    return seen


# ============================================================================
# parse_args
# ============================================================================


class TestParseArgs:
    def test_list_with_criteria(self):
        args = parse_args(
            ["list", "transection", "--search", "hair", "--filter", "type=income",
             "--filter", "occurredAtFrom=2024-03-01", "--sort", "amount", "--order", "asc"]
        )
        assert args["command"] == "list"
        assert args["entity"] == "transection"
        assert args["search"] == "hair"
        assert args["filters"] == [("type", "income"), ("occurredAtFrom", "2024-03-01")]
        assert (args["sort"], args["order"]) == ("amount", "asc")

    def test_export_paths(self):
        args = parse_args(["export", "inventory", "--xlsx", "out.xlsx", "--html", "out.html"])
        assert (args["xlsx"], args["html"]) == ("out.xlsx", "out.html")

    def test_bad_filter_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["list", "users", "--filter", "role"])

    def test_bad_order_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["list", "users", "--order", "up"])

    def test_unknown_option_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["--colour"])

    def test_register_details(self):
        args = parse_args(["register", "--email", "a@b.c", "--name", "Ann", "--phone", "0812345678", "--role", "admin"])
        assert args["command"] == "register"
        assert (args["email"], args["name"], args["phone"], args["role"]) == ("a@b.c", "Ann", "0812345678", "admin")

    def test_dashboard(self):
        assert parse_args(["dashboard"])["command"] == "dashboard"


# ============================================================================
# Config
# ============================================================================


class TestConfig:
    def test_token_per_environment(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ENTITYDESK_API_URL", raising=False)
        local = Config(api_url_override="http://localhost:4000/api/", config_dir=tmp_path)
        local.token = "local-token"
        prod = Config(api_url_override="https://desk.example.com/api", config_dir=tmp_path)
        prod.token = "prod-token"

        reread = Config(api_url_override="http://localhost:4000/api", config_dir=tmp_path)
        assert reread.token == "local-token"
        assert {e["url"] for e in reread.list_environments()} == {
            "http://localhost:4000/api",
            "https://desk.example.com/api",
        }

    def test_file_is_private(self, config):
        config.token = "t"
        mode = stat.S_IMODE(config.config_file.stat().st_mode)
        assert mode == 0o600

    def test_unreadable_file_starts_empty(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ENTITYDESK_API_URL", raising=False)
        (tmp_path / "config.json").write_text("{not json")
        config = Config(config_dir=tmp_path)
        assert config.token is None
        assert config.api_url == DEFAULT_API_URL

    def test_stale_default_url_is_ignored(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ENTITYDESK_API_URL", raising=False)
        (tmp_path / "config.json").write_text(json.dumps({"default_url": "https://old.example.com/api", "environments": {}}))
        config = Config(config_dir=tmp_path)
        assert config.api_url == DEFAULT_API_URL

        config.token = "t"
        assert list(json.loads(config.config_file.read_text())) == ["environments"]

    def test_env_url_used_without_flag(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENTITYDESK_API_URL", "https://env.example.com/api/")
        assert Config(config_dir=tmp_path).api_url == "https://env.example.com/api"

    def test_logout(self, config, capsys):
        config.token = "t"
        config.email = "a@b.c"
        assert logout(config)
        assert not config.is_authenticated
        assert "a@b.c" in capsys.readouterr().out
        assert not logout(config)


# ============================================================================
# list / export
# ============================================================================


class TestRunCollection:
    @pytest.mark.asyncio
    async def test_list_prints_filtered_rows(self, config, served, capsys):
        config.token = "t"
        args = parse_args(["list", "transection", "--filter", "type=income"])

        assert await run_collection(config, args)

        out = capsys.readouterr().out
        assert "Colour" in out and "Haircut" in out
        assert "Rent" not in out
        assert "Showing 2 of 2 matching (3 fetched)" in out
        assert served[0].url.params["limit"] == "100"
        assert served[0].headers["authorization"] == "Bearer t"

    @pytest.mark.asyncio
    async def test_unknown_filter_fails(self, config, served, capsys):
        config.token = "t"
        args = parse_args(["list", "transection", "--filter", "colour=red"])
        assert not await run_collection(config, args)
        assert "Unknown filter" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_dependent_filter_after_its_parent(self, config, served, capsys):
        config.token = "t"
        args = parse_args(["list", "transection", "--filter", "category=rent", "--filter", "type=expense"])

        assert await run_collection(config, args)

        out = capsys.readouterr().out
        assert "Rent" in out
        assert "Haircut" not in out and "Colour" not in out

    @pytest.mark.asyncio
    async def test_dependent_filter_without_parent_fails(self, config, served, capsys):
        config.token = "t"
        args = parse_args(["list", "transection", "--filter", "category=rent"])
        assert not await run_collection(config, args)
        assert "Filter category is not available until another filter is set" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_export_writes_both_files(self, config, served, tmp_path):
        config.token = "t"
        xlsx = tmp_path / "ledger.xlsx"
        html = tmp_path / "ledger.html"
        args = parse_args(
            ["export", "transactions", "--search", "r", "--xlsx", str(xlsx), "--html", str(html)]
        )

        assert await run_collection(config, args)

        ws = load_workbook(io.BytesIO(xlsx.read_bytes())).active
        assert ws["A1"].value == "ID"
        assert [row[0].value for row in ws.iter_rows(min_row=2)] == ["3", "2", "1"]
        document = html.read_text(encoding="utf-8")
        assert "<strong>Search:</strong> r" in document

    def test_unknown_entity(self, config, capsys):
        args = parse_args(["list", "suppliers"])
        assert not asyncio.run(run_collection(config, args))
        assert "Unknown entity" in capsys.readouterr().out

    def test_stored_config_shape(self, config):
        config.token = "t"
        config.email = "a@b.c"
        data = json.loads(config.config_file.read_text())
        assert data["environments"][API_URL] == {"token": "t", "email": "a@b.c"}


# ============================================================================
# register / dashboard
# ============================================================================


@pytest.fixture
def accounts(monkeypatch):
    """Route CollectionClient to an auth server that knows one taken email."""
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        body = json.loads(request.content)
        if request.url.path.endswith("/auth/register"):
            if body["email"] == "taken@example.com":
                return httpx.Response(409, json={"message": "Email already registered"})
            return httpx.Response(201, json={"id": 7, "email": body["email"], "name": body["name"]})
        token = jwt.encode({"id": 7, "email": body["email"], "role": "member"}, "secret", algorithm="HS256")
        return httpx.Response(200, json={"token": token})

    original_init = CollectionClient.__init__

    def patched_init(self, api_url, session=None, timeout=30.0, transport=None):
        original_init(self, api_url, session, timeout, httpx.MockTransport(handler))

    monkeypatch.setattr(CollectionClient, "__init__", patched_init)
    return seen


class TestRegister:
    def test_registers_then_signs_in(self, config, accounts, capsys):
        assert asyncio.run(register(config, "ann@example.com", "pw", "Ann", phone="0812345678"))

        assert [r.url.path for r in accounts] == ["/api/auth/register", "/api/auth/login"]
        assert json.loads(accounts[0].content)["role"] == "member"
        assert config.is_authenticated
        assert config.email == "ann@example.com"
        out = capsys.readouterr().out
        assert "Registered ann@example.com" in out
        assert "(member)" in out

    def test_taken_email_fails(self, config, accounts, capsys):
        assert not asyncio.run(register(config, "taken@example.com", "pw", "Ann"))
        assert not config.is_authenticated
        assert "Registration failed: Email already registered" in capsys.readouterr().out


class TestDashboard:
    @pytest.mark.asyncio
    async def test_prints_collections_and_month(self, config, served, capsys):
        config.token = "t"

        assert await run_dashboard(config)

        out = capsys.readouterr().out
        assert "Collections" in out
        assert "Income & expenses" in out
        assert "Users" not in out
        assert "This month (since" in out
        assert "Unavailable" not in out
        assert {r.url.path for r in served} == {
            "/api/appointments",
            "/api/branches",
            "/api/inventory",
            "/api/transection",
        }
