import json
import os

import pytest

from TetFlipSim.runner import buildParser, main, TetFlipRunner


def test_parser_defaults():
    args = buildParser().parse_args([])
    assert args.preset == "small"
    assert args.steps is None
    assert not args.no_export


@pytest.mark.usefixtures("restorePackageLogger")
def test_main_runs_preset(capsys):
    results = main(["--preset", "small", "--steps", "3", "--seed", "5", "--no-export"])
    assert results["finalState"].step == 3
    assert results["nFrames"] == 4
    assert results["exportPath"] is None
    assert "SIMULATION SUMMARY" in capsys.readouterr().out


def test_run_from_config_exports(tmp_path):
    data = {
        "simulation": {"maxParticles": 40, "timeStep": 0.01, "nSteps": 2},
        "mesh": {"resolution": [3, 3, 3]},
        "scenario": {"nParticles": 40, "seed": 2},
    }
    path = tmp_path / "run.json"
    path.write_text(json.dumps(data))

    results = TetFlipRunner().runFromConfig(str(path), exportDir=str(tmp_path / "frames"))
    assert results["finalState"].step == 2
    assert results["finalState"].time == pytest.approx(0.02)
    assert os.path.exists(results["exportPath"])


def test_negative_steps_rejected(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps({"simulation": {"maxParticles": 10}, "scenario": {"nParticles": 10}}))
    with pytest.raises(ValueError):
        TetFlipRunner().runFromConfig(str(path), nSteps=-1, doExport=False)
