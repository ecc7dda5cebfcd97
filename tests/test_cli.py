"""Tests for the command-line interface."""

import json

import pytest


@pytest.fixture
def scene_file(small_scene_dict, tmp_path):
    path = tmp_path / "small.json"
    path.write_text(json.dumps(small_scene_dict), encoding="utf-8")
    return path


@pytest.fixture
def no_reinit(monkeypatch):
    """Keep main() from re-initializing Taichi mid-session."""
    monkeypatch.setattr("mortonray.cli.init_taichi", lambda settings=None: None)


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test the default options."""
        from mortonray.cli import parse_args

        args = parse_args(["scene.json"])
        assert str(args.scene) == "scene.json"
        assert args.output is None
        assert not args.tree
        assert args.seed == 0
        assert args.batch_size == 10
        assert args.arch == "cpu"
        assert args.threads is None

    def test_unknown_arch(self):
        """Test that only known backends are accepted."""
        from mortonray.cli import parse_args

        with pytest.raises(SystemExit):
            parse_args(["scene.json", "--arch", "tpu"])


class TestResolveScene:
    """Tests for picking the scene and the output path."""

    def test_output_defaults_to_png(self, scene_file):
        """Test that the image goes next to the scene file."""
        from mortonray.cli import parse_args, resolve_scene

        scene, output = resolve_scene(parse_args([str(scene_file)]))
        assert output == scene_file.with_suffix(".png")
        assert len(scene.objects) == 4

    def test_nothing_to_render(self):
        """Test that running without a scene is an error."""
        from mortonray.cli import parse_args, resolve_scene
        from mortonray.core.errors import SceneFormatError

        with pytest.raises(SceneFormatError, match="nothing to render"):
            resolve_scene(parse_args([]))

    def test_wrong_extension(self, tmp_path):
        """Test that scene files must be JSON."""
        from mortonray.cli import parse_args, resolve_scene
        from mortonray.core.errors import SceneFormatError

        with pytest.raises(SceneFormatError, match=".json"):
            resolve_scene(parse_args([str(tmp_path / "scene.ron")]))

    def test_random_scene_is_saved(self, tmp_path):
        """Test that --random writes the generated document next to the image."""
        from mortonray.cli import parse_args, resolve_scene
        from mortonray.scene import SceneDescription

        output = tmp_path / "render.png"
        scene, resolved = resolve_scene(parse_args(["--random", "--seed", "5", "-o", str(output)]))
        assert resolved == output
        saved = SceneDescription.load(tmp_path / "random_scene.json")
        assert saved.to_dict() == scene.to_dict()


class TestRun:
    """Tests for rendering through the CLI."""

    def test_renders_png(self, scene_file, tmp_path):
        """Test that run writes an image of the scene's size."""
        from PIL import Image

        from mortonray.cli import parse_args, run
        from mortonray.config import RenderSettings

        output = tmp_path / "out.png"
        path = run(parse_args([str(scene_file), "-o", str(output)]), RenderSettings(batch_size=3))
        assert path == output
        with Image.open(output) as image:
            assert image.size == (6, 4)

    def test_tree_is_printed(self, scene_file, capsys):
        """Test that --tree dumps the hierarchy."""
        from mortonray.cli import parse_args, run
        from mortonray.config import RenderSettings

        run(parse_args([str(scene_file), "--tree"]), RenderSettings())
        out = capsys.readouterr().out
        assert out.count("Leaf") == 4
        assert scene_file.with_suffix(".png").exists()

    def test_logs_scene_summary(self, scene_file, caplog):
        """Test the load and build messages."""
        from mortonray.cli import parse_args, run
        from mortonray.config import RenderSettings

        with caplog.at_level("INFO", logger="mortonray.cli"):
            run(parse_args([str(scene_file)]), RenderSettings())
        assert "Successfully loaded scene with 4 objects and 4 materials" in caplog.text
        assert "Successfully built BVH tree with 7 nodes (4 leaves)" in caplog.text


class TestMain:
    """Tests for the entry point's exit codes."""

    def test_example(self, capsys):
        """Test that --example prints a parseable scene and succeeds."""
        from mortonray.cli import main
        from mortonray.scene import EXAMPLE_SCENE

        assert main(["--example"]) == 0
        out = capsys.readouterr().out
        assert json.loads(out[out.index("{") :]) == EXAMPLE_SCENE

    def test_success(self, scene_file, tmp_path, no_reinit):
        """Test that a good scene renders and exits with 0."""
        from mortonray.cli import main

        output = tmp_path / "main.png"
        assert main([str(scene_file), "-o", str(output)]) == 0
        assert output.exists()

    @pytest.mark.parametrize(
        "argv",
        [
            [],
            ["missing.json"],
            ["scene.txt"],
            ["scene.json", "--batch-size", "0"],
            ["scene.json", "--threads", "0"],
        ],
    )
    def test_failures_exit_with_1(self, argv, tmp_path, monkeypatch, no_reinit):
        """Test that user errors are logged and give exit code 1."""
        from mortonray.cli import main

        monkeypatch.chdir(tmp_path)
        assert main(argv) == 1

    def test_malformed_scene(self, tmp_path, no_reinit, caplog):
        """Test that a malformed scene reports the offending field."""
        from mortonray.cli import main

        path = tmp_path / "bad.json"
        path.write_text('{"image": {"height": 4}}', encoding="utf-8")
        assert main([str(path)]) == 1
        assert 'missing field "samples_per_pixel"' in caplog.text
