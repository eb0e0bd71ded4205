"""Tests for the shopfast CLI."""

import json
import subprocess
import sys

from shopfast import __version__
from shopfast.cli import create_parser, main


def run_shopfast(args: list[str]) -> subprocess.CompletedProcess:
    """Run the shopfast CLI in a subprocess."""
    return subprocess.run(
        [sys.executable, "-m", "shopfast"] + args,
        capture_output=True,
        text=True,
    )


class TestCLI:
    def test_products_table(self, capsys):
        assert main(["products"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("10 product(s):")
        assert "iPhone 15 Pro" in out

    def test_products_json_by_category(self, capsys):
        assert main(["products", "--category", "camera", "--json"]) == 0
        products = json.loads(capsys.readouterr().out)
        assert [p["id"] for p in products] == ["4"]
        assert products[0]["price"] == 15999.99

    def test_products_unknown_category(self, capsys):
        assert main(["products", "-c", "toaster"]) == 0
        assert "No products found." in capsys.readouterr().out

    def test_users_json(self, capsys):
        assert main(["users", "--json"]) == 0
        users = json.loads(capsys.readouterr().out)
        assert [u["email"] for u in users][:2] == ["daniel@example.com", "joao@example.com"]

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: shopfast" in capsys.readouterr().out

    def test_serve_rejects_bad_settings(self, monkeypatch, capsys):
        monkeypatch.setenv("SHOPFAST_LOG_LEVEL", "loud")
        assert main(["serve"]) == 1
        assert "SHOPFAST_LOG_LEVEL" in capsys.readouterr().err

    def test_serve_uses_module_app(self, monkeypatch):
        import uvicorn

        from shopfast import api

        served = []
        monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: served.append(target))
        assert main(["serve"]) == 0
        assert served == [api.app]

    def test_serve_defaults(self):
        args = create_parser().parse_args(["serve"])
        assert args.host == "127.0.0.1"
        assert args.port == 3000
        assert args.reload is False


class TestCLIIntegration:
    def test_module_entry_point(self):
        result = run_shopfast(["users"])
        assert result.returncode == 0
        assert "5 user(s):" in result.stdout

    def test_version(self):
        result = run_shopfast(["--version"])
        assert result.returncode == 0
        assert __version__ in result.stdout
