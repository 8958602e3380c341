"""Tests for the command-line interface.

Taichi is initialized once per session by conftest, so these tests drive
run() directly instead of main(), which would initialize it again.
"""

import logging

import numpy as np
import pytest

from src.pathtracer.cli import (
    DEFAULT_NS,
    DEFAULT_NX,
    DEFAULT_NY,
    build_parser,
    parse_lenient_int,
)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.ns is None and args.nx is None and args.ny is None
        assert args.output == "img0.png"
        assert args.max_bounce == 50
        assert args.seed is None
        assert args.scene == "spheres"
        assert args.tone_map == "none"
        assert args.arch == "cpu"
        assert args.debug is False

    def test_positionals_and_options(self):
        args = build_parser().parse_args(
            ["16", "200", "100", "--seed", "7", "--scene", "showcase", "--tone-map", "reinhard", "-v"]
        )
        assert (args.ns, args.nx, args.ny) == ("16", "200", "100")
        assert args.seed == 7
        assert args.scene == "showcase"
        assert args.tone_map == "reinhard"
        assert args.verbose is True

    def test_verbose_and_quiet_conflict(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--verbose", "--quiet"])

    def test_unknown_scene(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--scene", "cornell"])


class TestLenientInt:
    def test_valid(self):
        assert parse_lenient_int("32", DEFAULT_NS, "ns") == 32

    def test_missing_uses_default(self):
        assert parse_lenient_int(None, DEFAULT_NX, "nx") == DEFAULT_NX

    def test_garbage_falls_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.pathtracer.cli"):
            assert parse_lenient_int("lots", DEFAULT_NY, "ny") == DEFAULT_NY
        assert "ny" in caplog.text
        assert "lots" in caplog.text


class TestRun:
    def test_renders_png(self, tmp_path):
        from src.pathtracer.cli import run
        from src.pathtracer.imaging.export import read_png

        output = tmp_path / "spheres.png"
        args = build_parser().parse_args(
            ["2", "20", "10", "--seed", "1", "--max-bounce", "8", "--output", str(output)]
        )
        assert run(args) == output

        pixels = read_png(output)
        assert pixels.shape == (10, 20, 4)
        assert pixels.dtype == np.uint8

    def test_garbage_sizes_fall_back(self, tmp_path, caplog):
        """A non-numeric sample count renders with the default instead."""
        from src.pathtracer.cli import run

        args = build_parser().parse_args(
            ["many", "8", "4", "--seed", "1", "--max-bounce", "2", "--output", str(tmp_path / "out.png")]
        )
        with caplog.at_level(logging.WARNING, logger="src.pathtracer.cli"):
            run(args)
        assert (tmp_path / "out.png").exists()
        assert "many" in caplog.text

    @pytest.mark.parametrize("sizes", [["1", "0", "10"], ["0", "10", "10"], ["1", "10", "5000"]])
    def test_invalid_options_raise(self, tmp_path, sizes):
        from src.pathtracer.cli import run

        args = build_parser().parse_args([*sizes, "--output", str(tmp_path / "out.png")])
        with pytest.raises(ValueError):
            run(args)

    def test_missing_output_directory(self, tmp_path):
        from src.pathtracer.cli import run

        args = build_parser().parse_args(
            ["1", "4", "2", "--max-bounce", "1", "--output", str(tmp_path / "nope" / "out.png")]
        )
        with pytest.raises(OSError):
            run(args)


def test_logger_follows_module_name():
    from src.pathtracer import cli

    assert cli.logger.name == "src.pathtracer.cli"
    assert cli.logger.name.startswith("src.pathtracer.")
