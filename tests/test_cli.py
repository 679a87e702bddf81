import json

import pytest

from watermark_layout.cli import main


def test_layout_prints_json(capsys):
    code = main([
        "--no-settings", "layout", "--operation", "fit_watermark_image",
        "--canvas", "1000x800", "--logo-size", "500x500",
    ])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["logo"]["size"] == {"width": 160, "height": 160}
    assert data["logo"]["position"] == {"x": 800, "y": 600}
    assert data["base"]["mode"] == "fit"


def test_layout_text(capsys):
    code = main([
        "--no-settings", "layout", "-p", "fill_watermark_text", "-c", "1000x800",
        "-t", "one", "-t", "two", "-t", "Title",
    ])
    assert code == 0
    boxes = json.loads(capsys.readouterr().out)["text"]["boxes"]
    assert [(b["x"], b["y"]) for b in boxes] == [(610, 387), (610, 480), (600, 600)]


def test_layout_uses_settings_file(capsys):
    from watermark_layout.settings import DEFAULT_SETTINGS, save_settings

    data = dict(DEFAULT_SETTINGS, size_ratio=0.5)
    save_settings(data)
    main(["layout", "-p", "fit_watermark_image", "-c", "1000x800", "--logo-size", "500x500"])
    out = json.loads(capsys.readouterr().out)
    assert out["logo"]["size"]["width"] == 400


def test_invalid_layout_exit_code(capsys):
    code = main([
        "--no-settings", "layout", "-p", "fit_watermark_image", "-c", "1000x800",
        "--logo-size", "500x500", "--size-ratio", "2",
    ])
    assert code == 2
    assert "size_ratio" in capsys.readouterr().err


def test_missing_logo_size_is_reported(capsys):
    code = main(["--no-settings", "layout", "-p", "fit_watermark_image", "-c", "1000x800"])
    assert code == 2
    assert "requires a watermark spec" in capsys.readouterr().err


def test_render(magick_calls, photo, assets, tmp_path, capsys):
    out = tmp_path / "out.png"
    code = main([
        "--no-settings", "render", str(photo), "-p", "fit_watermark_image", "-c", "1000x800",
        "--assets", str(assets), "--opacity", "40", "--strip", "-o", str(out),
    ])
    assert code == 0
    assert capsys.readouterr().out.strip() == str(out)
    assert len(magick_calls) == 2
    assert "-strip" in magick_calls[0]
    assert "compose:args=40" in magick_calls[1]


def test_render_missing_asset(magick_calls, photo, assets, capsys):
    code = main([
        "--no-settings", "render", str(photo), "-p", "fit_watermark_image", "-c", "1000x800",
        "--assets", str(assets), "--logo", "missing.png",
    ])
    assert code == 1
    assert "missing.png" in capsys.readouterr().err


def test_unknown_format_rejected(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--no-settings", "layout", "-p", "fit", "-c", "100x100", "--format", "exe"])
    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_render_unsupported_input(magick_calls, tmp_path, capsys):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello", encoding="utf-8")
    code = main(["--no-settings", "render", str(notes), "-p", "fit", "-c", "100x100"])
    assert code == 1
    assert "unsupported image type" in capsys.readouterr().err
    assert magick_calls == []
