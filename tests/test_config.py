"""Tests for configuration validation.

Invalid configurations must be rejected when Settings is constructed.
"""

import pytest
from pydantic import ValidationError

from tokengate.core.config import Settings

SECRET = "config-test-secret-abcdefghijklmnopqrstuvwxyz"


class TestSecretValidation:
    def test_valid_secret_accepted(self):
        assert Settings(jwt_secret_key=SECRET).jwt_secret_key == SECRET

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(jwt_secret_key="too-short")
        assert "32" in str(exc_info.value)


class TestAlgorithmValidation:
    def test_algorithm_normalised(self):
        assert Settings(jwt_secret_key=SECRET, jwt_algorithm="hs512").jwt_algorithm == "HS512"

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_secret_key=SECRET, jwt_algorithm="RS256")


class TestValidityValidation:
    def test_defaults(self):
        settings = Settings(jwt_secret_key=SECRET)
        assert settings.default_token_validity == "24 hours"
        assert settings.bootstrap_token_validity == "10 minutes"

    @pytest.mark.parametrize("field", ["default_token_validity", "bootstrap_token_validity"])
    def test_unparseable_validity_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(jwt_secret_key=SECRET, **{field: "eventually"})


class TestDerivedValues:
    def test_bootstrap_scope_list(self):
        settings = Settings(
            jwt_secret_key=SECRET,
            bootstrap_admin_scope=" General.Access, Tokens.Generate,,General.Access ",
        )
        assert settings.bootstrap_admin_scope_list == ["General.Access", "Tokens.Generate"]

    def test_default_bootstrap_scope_covers_token_management(self):
        scope = Settings(jwt_secret_key=SECRET).bootstrap_admin_scope_list
        assert {"General.Access", "Tokens.Generate", "Tokens.List", "General.Logs"} <= set(scope)

    def test_cors_origins_list(self):
        settings = Settings(jwt_secret_key=SECRET, cors_origins="https://a.test, https://b.test")
        assert settings.cors_origins_list == ["https://a.test", "https://b.test"]

    def test_invalid_store_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_secret_key=SECRET, tokengate_store="redis")


class TestSecurityWarnings:
    def test_memory_store_warns(self):
        warnings = Settings(jwt_secret_key=SECRET, tokengate_store="memory").check_security_configuration()
        assert any("TOKENGATE_STORE=memory" in w for w in warnings)

    def test_low_variety_secret_warns(self):
        warnings = Settings(jwt_secret_key="a" * 40, tokengate_store="sql").check_security_configuration()
        assert any("variety" in w for w in warnings)
