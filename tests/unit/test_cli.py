"""
Test the command line interface
"""
import json
import logging
import os
from click.testing import CliRunner
from search_convergence.cli import cli
from search_convergence.core.config import Config, DiscoveryTopology


class TestCli:
    """Test CLI wiring that does not need a search service"""

    def setup_method(self):
        self.runner = CliRunner()
        self.root_handlers = list(logging.getLogger().handlers)
        self.root_level = logging.getLogger().level

    def teardown_method(self):
        root = logging.getLogger()
        root.handlers[:] = self.root_handlers
        root.setLevel(self.root_level)

    def test_init_config(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init-config', '-o', 'config.json'])

            assert result.exit_code == 0
            assert os.path.exists('config.json')
            assert isinstance(Config.load_from_file('config.json').topology, DiscoveryTopology)

    def test_mode_without_management_api(self):
        with self.runner.isolated_filesystem():
            with open('config.json', 'w') as f:
                json.dump({
                    "topology": {
                        "mode": "single",
                        "single_search_service": {
                            "subscription": "sub",
                            "resource_group": "rg",
                            "name": "search-0"
                        }
                    }
                }, f)

            result = self.runner.invoke(cli, ['--config', 'config.json', 'services'])

            assert result.exit_code == 1
            assert "requires management API access" in result.output
