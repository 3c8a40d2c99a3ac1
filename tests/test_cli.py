"""Tests for the admin bootstrap command."""

from tokengate.cli import main


class TestBootstrapCommand:
    def test_prints_admin_token(self, capsys):
        assert main([]) == 0

        out = capsys.readouterr().out
        assert "Admin token issued:" in out
        assert "General.Access" in out
        token = out.strip().splitlines()[-1].strip()
        assert token.count(".") == 2

    def test_scope_override(self, capsys):
        assert main(["--scope", "General.Access,Tokens.Generate", "--validity", "5 minutes"]) == 0

        out = capsys.readouterr().out
        assert "scope: General.Access, Tokens.Generate" in out

    def test_invalid_validity_reports_error(self, capsys):
        assert main(["--validity", "eventually"]) == 1
        assert "InvalidPayloadError" in capsys.readouterr().err
