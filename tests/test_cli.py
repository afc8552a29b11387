"""
Tests for the command-line interface
"""

import json

from efloat import __version__
from efloat.cli import main


class TestCLI:
    """Test the efloat subcommands."""

    def test_next(self, capsys):
        assert main(['next', '1.0']) == 0
        out = capsys.readouterr().out
        assert "Next f32 up: 1.0000001192092896" in out
        assert "Next f32 down: 0.9999999403953552" in out

    def test_next_f64_json(self, capsys):
        assert main(['next', '1.0', '-p', 'f64', '--json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['next_up'] == 1.0 + 2.0 ** -52
        assert data['precision'] == 'f64'

    def test_gamma(self, capsys):
        assert main(['gamma', '3']) == 0
        out = capsys.readouterr().out
        assert "gamma(3)" in out
        assert "Unit roundoff (f32)" in out

    def test_gamma_invalid(self, capsys):
        assert main(['gamma', '-1']) == 1
        assert "Error:" in capsys.readouterr().out

    def test_bounds_json(self, capsys):
        assert main(['bounds', '0.1', '--json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['dtype'] == 'float32'
        assert data['low'] < 0.1 < data['high']
        assert data['exact'] is False

    def test_bounds_exact(self, capsys):
        assert main(['bounds', '0.5']) == 0
        assert "Exact: True" in capsys.readouterr().out

    def test_bounds_with_error(self, capsys):
        assert main(['bounds', '2', '--error', '0.5', '--json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['low'] == 1.5
        assert data['high'] == 2.5

    def test_bounds_negative_error(self, capsys):
        assert main(['bounds', '2', '--error', '-0.5']) == 1
        assert "Error:" in capsys.readouterr().out

    def test_bounds_unparseable(self, capsys):
        assert main(['bounds', 'abc']) == 1

    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_version(self, capsys):
        assert main(['version']) == 0
        assert __version__ in capsys.readouterr().out
