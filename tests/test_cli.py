from __future__ import annotations

import json

import pytest

from sim_demand_response.cli import build_argument_parser, main


@pytest.fixture()
def scheme_files(tmp_path):
    base = tmp_path / "base.txt"
    base.write_text("00:00-23:59-0.20\n", encoding="utf-8")
    new = tmp_path / "new.txt"
    new.write_text("00:00-11:59-0.10\n12:00-23:59-0.30\n", encoding="utf-8")
    return base, new


def test_validate_scheme_reports_status(tmp_path, capsys, scheme_files):
    base, _ = scheme_files
    main(["validate-scheme", str(base)])
    assert "Pricing scheme is valid." in capsys.readouterr().out

    broken = tmp_path / "broken.txt"
    broken.write_text("00:00-11:59-0.10\n12:00-23:59\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["validate-scheme", str(broken)])
    assert excinfo.value.code == 1
    assert "error at line 2" in capsys.readouterr().out


def test_shift_preview_prints_binned_json(capsys, scheme_files):
    base, new = scheme_files
    main(
        [
            "shift",
            "--normal",
            "720",
            "120",
            "--base-scheme",
            str(base),
            "--new-scheme",
            str(new),
            "--policy",
            "discrete",
            "--binned",
        ]
    )
    payload = json.loads(capsys.readouterr().out)
    assert payload["policy"] == "discrete"
    assert len(payload["bins"]) == 144
    assert sum(payload["bins"]) == pytest.approx(1.0)


def test_sample_is_reproducible_with_seed(capsys):
    args = ["sample", "--normal", "600", "60", "--n", "5", "--seed", "11"]
    main(args)
    first = json.loads(capsys.readouterr().out)
    main(args)
    second = json.loads(capsys.readouterr().out)
    assert first == second
    assert len(first) == 5


def test_status_prints_parameters(capsys):
    main(["status", "--normal", "620", "200", "--precompute", "0", "1440", "144"])
    out = capsys.readouterr().out
    assert "Normal Distribution with Mean: 620.0 Sigma: 200.0" in out
    assert "Number of Bins: 144" in out


def test_distribution_source_is_required():
    parser = build_argument_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["status"])
