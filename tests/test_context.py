"""Tests for the shared CLI context."""

import logging

from lognova.config import GlobalConfig, LogNovaConfig
from lognova.core.context import LogNovaContext
from lognova.core.logs.service import LogService
from lognova.core.output import OutputFormat


class TestLogNovaContext:
    """Tests for LogNovaContext."""

    def test_defaults(self, mock_context):
        assert mock_context.profile_name == "default"
        assert mock_context.output_format == OutputFormat.TABLE
        assert mock_context.color is False

    def test_output_format_from_config(self, mock_config):
        mock_config.global_settings = GlobalConfig(output_format=OutputFormat.YAML)
        ctx = LogNovaContext(config=mock_config)
        assert ctx.output_format == OutputFormat.YAML

    def test_cli_format_overrides_config(self, mock_config):
        mock_config.global_settings = GlobalConfig(output_format=OutputFormat.YAML)
        ctx = LogNovaContext(config=mock_config, output_format=OutputFormat.JSON)
        assert ctx.output_format == OutputFormat.JSON

    def test_color_never(self):
        config = LogNovaConfig(**{"global": {"color": "never"}})
        assert LogNovaContext(config=config, color=True).color is False

    def test_verbosity(self, mock_config):
        LogNovaContext(config=mock_config, verbose=2)
        assert logging.getLogger("lognova").level == logging.DEBUG

        LogNovaContext(config=mock_config, quiet=True)
        assert logging.getLogger("lognova").level == logging.ERROR

        LogNovaContext(config=mock_config)
        assert logging.getLogger("lognova").level == logging.WARNING

    def test_service_is_lazy_and_closed(self, mock_context):
        assert mock_context._service is None

        service = mock_context.service
        assert isinstance(service, LogService)
        assert mock_context.service is service

        mock_context.close()
        assert mock_context._service is None
