"""
Tests for configuration module
"""
import pytest
import os
from unittest.mock import patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ANALYSIS_TYPES, ConfigValidationError, validate_settings
from report.formats import AnalysisType


class TestConfigValidation:
    """Tests for configuration validation"""

    def test_valid_config_passes(self):
        """Default config should be valid"""
        from config import validate_config

        try:
            validate_config()
        except ConfigValidationError:
            pytest.fail("Default config should be valid")

    def test_zero_timeout_fails(self):
        """Zero timeout should fail validation"""
        from config import _validate_positive_int

        with pytest.raises(ConfigValidationError):
            _validate_positive_int("METRICS_TIMEOUT_SECONDS", 0)

    def test_invalid_url_fails(self):
        """Invalid URL should fail validation"""
        from config import _validate_url

        with pytest.raises(ConfigValidationError):
            _validate_url("metrics_url", "not-a-url")

    def test_valid_https_url_passes(self):
        """Valid HTTPS URL should pass validation"""
        from config import _validate_url

        _validate_url("metrics_url", "https://metrics.example.com/apis/metrics.k8s.io/v1beta1/pods")


class TestValidateSettings:
    """Tests for validate_settings"""

    def test_defaults_are_valid(self, make_settings):
        validate_settings(make_settings())

    @pytest.mark.parametrize('analysis_type', [t.value for t in AnalysisType])
    def test_every_report_format_accepted(self, make_settings, analysis_type):
        validate_settings(make_settings(analysis_type=analysis_type))

    def test_choices_follow_report_formats(self):
        assert ANALYSIS_TYPES == [t.value for t in AnalysisType]

    def test_unknown_analysis_type_rejected(self, make_settings):
        """Message names the option and lists the valid values"""
        with pytest.raises(ConfigValidationError) as exc:
            validate_settings(make_settings(analysis_type='nonexistent'))
        msg = str(exc.value)
        assert 'analysis_type' in msg
        assert 'nonexistent' in msg
        assert 'comprehensive' in msg

    @pytest.mark.parametrize('threshold', [0, -5, 100.5, 'ninety', True, None])
    def test_threshold_out_of_domain_rejected(self, make_settings, threshold):
        with pytest.raises(ConfigValidationError) as exc:
            validate_settings(make_settings(health_threshold=threshold))
        assert 'health_threshold' in str(exc.value)

    @pytest.mark.parametrize('threshold', [0.01, 50, 90.0, 100])
    def test_threshold_in_domain_accepted(self, make_settings, threshold):
        validate_settings(make_settings(health_threshold=threshold))

    def test_invalid_namespace_names_rejected(self, make_settings):
        with pytest.raises(ConfigValidationError) as exc:
            validate_settings(make_settings(ignore_namespaces=['kube-system', 'Bad_Name', 'x' * 64]))
        assert 'Bad_Name' in str(exc.value)

    def test_ignore_namespaces_must_be_list(self, make_settings):
        with pytest.raises(ConfigValidationError):
            validate_settings(make_settings(ignore_namespaces=42))

    def test_non_boolean_flag_rejected(self, make_settings):
        with pytest.raises(ConfigValidationError) as exc:
            validate_settings(make_settings(include_node_info='yes'))
        assert 'include_node_info' in str(exc.value)

    def test_bad_metrics_url_rejected(self, make_settings):
        with pytest.raises(ConfigValidationError) as exc:
            validate_settings(make_settings(metrics_url='ftp://metrics'))
        assert 'metrics_url' in str(exc.value)

    def test_all_errors_reported_together(self, make_settings):
        with pytest.raises(ConfigValidationError) as exc:
            validate_settings(make_settings(analysis_type='bogus', health_threshold=0, debug_mode='no'))
        msg = str(exc.value)
        assert msg.startswith("Configuration validation failed:")
        assert 'analysis_type' in msg
        assert 'health_threshold' in msg
        assert 'debug_mode' in msg


class TestGetSettings:
    """Tests for get_settings precedence"""

    def test_returns_every_option(self):
        from config import get_settings, get_settings_keys

        settings = get_settings()
        assert set(settings) == set(get_settings_keys())

    def test_overrides_win_and_none_is_ignored(self):
        from config import get_settings

        settings = get_settings(overrides={'analysis_type': 'security', 'output_dir': None})
        assert settings['analysis_type'] == 'security'
        assert settings['output_dir'] is not None

    def test_ignore_namespaces_csv_string_is_split(self):
        from config import get_settings

        settings = get_settings(overrides={'ignore_namespaces': 'kube-system, monitoring ,'})
        assert settings['ignore_namespaces'] == ['kube-system', 'monitoring']

    def test_yaml_file_between_env_and_overrides(self, tmp_path):
        from config import get_settings

        cfg = tmp_path / "settings.yaml"
        cfg.write_text("analysis_type: capacity\nhealth_threshold: 75\ninclude_node_info: false\n")
        settings = get_settings(config_path=str(cfg), overrides={'analysis_type': 'health'})
        assert settings['health_threshold'] == 75
        assert settings['include_node_info'] is False
        assert settings['analysis_type'] == 'health'

    def test_yaml_file_with_unknown_key_fails(self, tmp_path):
        from config import load_config_file

        cfg = tmp_path / "settings.yaml"
        cfg.write_text("analyse_type: capacity\n")
        with pytest.raises(ConfigValidationError) as exc:
            load_config_file(str(cfg))
        assert 'analyse_type' in str(exc.value)

    def test_yaml_file_not_a_mapping_fails(self, tmp_path):
        from config import load_config_file

        cfg = tmp_path / "settings.yaml"
        cfg.write_text("- standard\n- health\n")
        with pytest.raises(ConfigValidationError):
            load_config_file(str(cfg))

    def test_missing_yaml_file_fails(self, tmp_path):
        from config import load_config_file

        with pytest.raises(ConfigValidationError):
            load_config_file(str(tmp_path / "absent.yaml"))

    def test_empty_yaml_file_is_no_overrides(self, tmp_path):
        from config import load_config_file

        cfg = tmp_path / "settings.yaml"
        cfg.write_text("")
        assert load_config_file(str(cfg)) == {}


class TestLoggingSetup:
    """Tests for logging configuration"""

    def test_setup_logging_configures_root(self):
        """setup_logging should configure root logger"""
        import logging
        from config import setup_logging

        setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level in [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR]
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestEnvHelpers:
    """Tests for the environment parsing helpers"""

    @pytest.mark.parametrize('raw,expected', [('1', True), ('true', True), ('YES', True),
                                              ('on', True), ('0', False), ('false', False)])
    def test_env_bool(self, raw, expected):
        from config import _env_bool

        with patch.dict(os.environ, {'TEST_VAR': raw}):
            assert _env_bool('TEST_VAR', not expected) is expected

    def test_env_bool_default_when_unset(self):
        from config import _env_bool

        with patch.dict(os.environ, {}, clear=True):
            assert _env_bool('TEST_VAR', True) is True

    def test_env_float_keeps_unparseable_value(self):
        """An unparseable value is kept so validation can report it"""
        from config import _env_float

        with patch.dict(os.environ, {'TEST_VAR': 'ninety'}):
            assert _env_float('TEST_VAR', 90.0) == 'ninety'
        with patch.dict(os.environ, {'TEST_VAR': '85.5'}):
            assert _env_float('TEST_VAR', 90.0) == 85.5
