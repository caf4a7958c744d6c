import cv2
import pytest

import downscaler
from geometry import resolve_params


def test_output_name_carries_size_and_lambda():
    params = resolve_params(128, 0, 512, 384, 1.0)
    assert downscaler.output_name("photo.jpg", params) == "photo.jpg_128x96_1.000000.png"


def test_output_name_for_reference_policy():
    params = resolve_params(128, 0, 512, 384, 0.5)
    assert downscaler.output_name("photo.jpg", params, "bicubic") == "photo.jpg_128x96_bicubic.png"


def test_defaults_follow_usage():
    args = downscaler.build_parser().parse_args(["photo.jpg"])
    assert (args.width, args.height, args.lam) == (128, 0, 1.0)
    assert args.policy == ["dpid"]


def test_positional_overrides():
    args = downscaler.build_parser().parse_args(["photo.jpg", "0", "256", "0.5"])
    assert (args.width, args.height, args.lam) == (0, 256, 0.5)


def test_main_writes_dpid_result(chart_path, capsys):
    assert downscaler.main([str(chart_path), "32", "0", "0.5"]) == 0

    expected = f"{chart_path}_32x24_0.500000.png"
    out = cv2.imread(expected)
    assert out is not None
    assert out.shape == (24, 32, 3)
    assert f"Output filename: {expected}" in capsys.readouterr().out


def test_main_writes_every_policy(chart_path):
    assert downscaler.main([str(chart_path), "16", "-p", "dpid", "bicubic", "-j", "2"]) == 0
    assert cv2.imread(f"{chart_path}_16x12_1.000000.png").shape == (12, 16, 3)
    assert cv2.imread(f"{chart_path}_16x12_bicubic.png").shape == (12, 16, 3)


def test_main_explicit_output(chart_path, tmp_path):
    target = tmp_path / "small.png"
    assert downscaler.main([str(chart_path), "0", "48", "-o", str(target)]) == 0
    assert cv2.imread(str(target)).shape == (48, 64, 3)


def test_main_prints_metrics(chart_path, capsys):
    assert downscaler.main([str(chart_path), "32", "--metrics"]) == 0
    out = capsys.readouterr().out
    assert "dpid vs source" in out
    assert "SSIM" in out


def test_both_sizes_zero_fails_before_reading(tmp_path, capsys):
    missing = tmp_path / "missing.png"
    assert downscaler.main([str(missing), "0", "0"]) == 1
    assert "non-zero" in capsys.readouterr().err


def test_unreadable_source(tmp_path, capsys):
    bogus = tmp_path / "bogus.png"
    bogus.write_bytes(b"not an image")
    assert downscaler.main([str(bogus)]) == 1
    assert "unable to read image" in capsys.readouterr().err


def test_enlargement_fails(chart_path, capsys):
    assert downscaler.main([str(chart_path), "256"]) == 1
    assert "only reduction" in capsys.readouterr().err


def test_output_with_several_policies_is_rejected(chart_path, tmp_path):
    args = [str(chart_path), "16", "-p", "dpid", "box", "-o", str(tmp_path / "x.png")]
    assert downscaler.main(args) == 1


def test_load_image_raises_unreadable(tmp_path):
    with pytest.raises(downscaler.UnreadableSource):
        downscaler.load_image(tmp_path / "nothing.png")


def test_repeated_policy_runs_once(chart_path, capsys):
    assert downscaler.main([str(chart_path), "16", "-p", "dpid", "bicubic", "dpid"]) == 0
    out = capsys.readouterr().out
    assert out.count("Output filename:") == 2
    assert out.count("Running policy: dpid") == 1


def test_negative_workers_fail(chart_path, capsys):
    assert downscaler.main([str(chart_path), "16", "-j", "-1"]) == 1
    assert "worker" in capsys.readouterr().err
