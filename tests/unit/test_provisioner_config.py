"""Unit tests for provisioner config decoding and env overrides."""

import pytest

from clc_exec.provisioner import (
    ConfigDecodeError,
    ProvisionerConfig,
    ResourceConfig,
    decode_config,
    merge_env_overrides,
)


class TestMergeEnvOverrides:
    def test_env_fills_missing_username(self):
        config = ResourceConfig.from_mapping({"package": "PKG1"})

        merged = merge_env_overrides(config, {"CLC_USERNAME": "foo"})

        assert merged.raw["username"] == "foo"
        assert merged.config["username"] == "foo"

    def test_input_is_not_mutated(self):
        config = ResourceConfig.from_mapping({"package": "PKG1"})

        merge_env_overrides(
            config, {"CLC_USERNAME": "foo", "CLC_PASSWORD": "bar", "CLC_ACCOUNT": "baz"}
        )

        assert config.raw == {"package": "PKG1"}
        assert config.config == {"package": "PKG1"}

    def test_empty_env_values_are_ignored(self):
        config = ResourceConfig.from_mapping({"username": "u"})

        merged = merge_env_overrides(config, {"CLC_USERNAME": "", "CLC_ACCOUNT": ""})

        assert merged == config

    def test_available_env_value_replaces_config_value(self):
        config = ResourceConfig.from_mapping({"account": "from-config"})

        merged = merge_env_overrides(config, {"CLC_ACCOUNT": "from-env"})

        assert merged.raw["account"] == "from-env"

    def test_package_has_no_env_fallback(self):
        merged = merge_env_overrides(ResourceConfig(), {"CLC_PACKAGE": "PKG1"})

        assert "package" not in merged.raw

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("CLC_PASSWORD", "secret")

        merged = merge_env_overrides(ResourceConfig())

        assert merged.raw == {"password": "secret"}


class TestDecodeConfig:
    def test_complete_config_decodes_exactly(self, valid_config):
        result = decode_config(valid_config, environ={})

        assert result == ProvisionerConfig(
            username="u",
            password="p",
            account="a",
            package="PKG1",
            parameters={"foo": "bar"},
        )

    def test_parameters_are_optional(self):
        config = ResourceConfig.from_mapping(
            {"username": "u", "password": "p", "account": "a", "package": "PKG1"}
        )

        assert decode_config(config, environ={}).parameters == {}

    def test_unknown_key_fails(self, valid_config):
        config = ResourceConfig.from_mapping({**valid_config.raw, "colour": "blue"})

        with pytest.raises(ConfigDecodeError, match="colour: unknown configuration key"):
            decode_config(config, environ={})

    def test_missing_required_field_fails(self):
        config = ResourceConfig.from_mapping({"username": "u", "password": "p", "account": "a"})

        with pytest.raises(ConfigDecodeError, match="package"):
            decode_config(config, environ={})

    def test_empty_required_field_fails(self, valid_config):
        config = ResourceConfig.from_mapping({**valid_config.raw, "username": ""})

        with pytest.raises(ConfigDecodeError, match="username"):
            decode_config(config, environ={})

    def test_env_credentials_complete_config(self):
        config = ResourceConfig.from_mapping({"package": "PKG1"})
        environ = {"CLC_USERNAME": "eu", "CLC_PASSWORD": "ep", "CLC_ACCOUNT": "ea"}

        result = decode_config(config, environ=environ)

        assert (result.username, result.password, result.account) == ("eu", "ep", "ea")

    def test_interpolated_values_override_raw(self, valid_config):
        config = ResourceConfig(
            raw={**valid_config.raw, "package": "${var.package}"},
            config={"package": "PKG2"},
        )

        assert decode_config(config, environ={}).package == "PKG2"

    def test_weakly_typed_scalars_are_coerced(self):
        config = ResourceConfig.from_mapping(
            {
                "username": "u",
                "password": 1234,
                "account": "a",
                "package": "PKG1",
                "parameters": {"port": 8080, "debug": True, "ratio": 0.5},
            }
        )

        result = decode_config(config, environ={})

        assert result.password == "1234"  # noqa: S105
        assert result.parameters == {"port": "8080", "debug": "1", "ratio": "0.5"}

    def test_list_of_parameter_blocks_is_merged(self, valid_config):
        config = ResourceConfig.from_mapping(
            {**valid_config.raw, "parameters": [{"a": "1"}, {"b": "2", "a": "3"}]}
        )

        assert decode_config(config, environ={}).parameters == {"a": "3", "b": "2"}

    def test_nested_parameter_value_fails(self, valid_config):
        config = ResourceConfig.from_mapping(
            {**valid_config.raw, "parameters": {"nested": {"x": "y"}}}
        )

        with pytest.raises(ConfigDecodeError, match="parameters.nested"):
            decode_config(config, environ={})

    def test_password_is_hidden_from_repr(self, valid_config):
        result = decode_config(valid_config, environ={})

        assert "password" not in repr(result)
