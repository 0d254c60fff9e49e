"""Tests for mountprobe.core.config module."""

import pytest

from mountprobe.core.config import (
    CheckOptions,
    ConfigError,
    build_options,
    clamp_thresholds,
    load_config_file,
    load_layered_config,
    validate_config,
)


class TestLoadConfigFile:
    """Tests for load_config_file."""

    def test_returns_empty_dict_if_file_missing(self, tmp_path):
        """Returns empty dict when file doesn't exist."""
        assert load_config_file(tmp_path / "nonexistent.yaml") == {}

    def test_loads_yaml_file(self, tmp_path):
        """Loads and parses YAML config file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("stale: 5\nwrite_test: true\n")

        assert load_config_file(config_file) == {"stale": 5, "write_test": True}

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert load_config_file(config_file) == {}

    def test_invalid_yaml_raises(self, tmp_path):
        """Invalid YAML is a configuration error."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config_file(config_file)

    def test_non_mapping_raises(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_config_file(config_file)


class TestValidateConfig:
    """Tests for validate_config."""

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown option 'stal'"):
            validate_config({"stal": 3})

    def test_wrong_type(self):
        with pytest.raises(ConfigError, match="'write_test'.*bool"):
            validate_config({"write_test": "yes"})

    def test_bool_is_not_a_number(self):
        with pytest.raises(ConfigError, match="'stale'"):
            validate_config({"stale": True})

    def test_df_args_become_strings(self):
        assert validate_config({"df_args": ["-P", 1]}) == {"df_args": ["-P", "1"]}


class TestLayeredConfig:
    """Tests for project -> user precedence."""

    def test_project_overrides_user(self, tmp_path):
        user = tmp_path / "user.yaml"
        user.write_text("stale: 10\nperfdata: true\n")
        project = tmp_path / "project.yaml"
        project.write_text("stale: 4\n")

        config = load_layered_config(project_config=project, user_config=user)

        assert config == {"stale": 4, "perfdata": True}


class TestThresholds:
    """Tests for threshold defaults and clamping."""

    def test_defaults_follow_stale(self):
        assert clamp_thresholds(3, None, None) == (3, 3)

    def test_warning_clamped_to_critical(self):
        assert clamp_thresholds(5, 4, 2) == (2, 2)

    def test_critical_clamped_to_stale(self):
        assert clamp_thresholds(3, 1, 10) == (1, 3)

    def test_options_apply_clamping(self):
        opts = CheckOptions(stale=3, warning=5)
        assert opts.warning == 3
        assert opts.critical == 3

    def test_non_positive_stale_rejected(self):
        with pytest.raises(ConfigError, match="positive"):
            CheckOptions(stale=0)

    @pytest.mark.parametrize("name", ["stale", "warning", "critical"])
    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_non_finite_threshold_rejected(self, name, value):
        with pytest.raises(ConfigError, match="finite"):
            CheckOptions(**{name: value})

    def test_bad_exclude_pattern_rejected(self):
        with pytest.raises(ConfigError, match="Invalid exclude pattern"):
            CheckOptions(exclude="([")


class TestBuildOptions:
    """Tests for merging config and flags."""

    def test_flags_override_config(self):
        opts = build_options({"stale": 10, "write_test": True}, {"stale": 2.0, "write_test": None})
        assert opts.stale == 2.0
        assert opts.write_test is True

    def test_unset_flags_keep_defaults(self):
        opts = build_options({}, {"mountpoints": ["/mnt/a"], "auto": None})
        assert opts.mountpoints == ["/mnt/a"]
        assert opts.auto is False
        assert opts.stale == 3.0
