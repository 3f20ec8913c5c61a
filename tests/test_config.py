from pathlib import Path

import pytest

from commons_sim.config import ExportSettings, SimulationSettings, load_config

CONFIG_DIR = Path(__file__).resolve().parents[1] / 'configs'


def write(tmp_path, text):
    path = tmp_path / 'run.yaml'
    path.write_text(text)
    return path


def test_load_full_config(tmp_path):
    path = write(tmp_path, """
scenario: pollution
simulation:
  duration: 12.5
  frame_rate: 30
  speed: 0.5
  seed: 99
params:
  wind_speed: 4.0
export:
  csv: false
  gif: true
  record_every: 10
""")
    config = load_config(path)
    assert config.scenario == 'pollution'
    assert config.simulation == SimulationSettings(duration=12.5, frame_rate=30.0,
                                                   speed=0.5, seed=99)
    assert config.params == {'wind_speed': 4.0}
    assert config.export == ExportSettings(csv=False, snapshot=True, gif=True,
                                           record_every=10)


def test_missing_sections_use_defaults(tmp_path):
    config = load_config(write(tmp_path, "scenario: grazing\n"))
    assert config.simulation == SimulationSettings()
    assert config.export == ExportSettings()
    assert config.params == {}
    assert config.out_dir == Path('./output')


@pytest.mark.parametrize('text', [
    "simulation:\n  duration: 5\n",
    "scenario: grazing\nextras: {}\n",
    "scenario: grazing\nsimulation:\n  speed: 3\n",
    "scenario: grazing\nsimulation:\n  duration: -1\n",
    "scenario: grazing\nsimulation:\n  tempo: 1\n",
    "scenario: grazing\nexport:\n  record_every: 0\n",
    "scenario: grazing\nparams: [1, 2]\n",
    "- just\n- a list\n",
    "scenario: [unclosed\n",
])
def test_invalid_config_raises_value_error(tmp_path, text):
    with pytest.raises(ValueError):
        load_config(write(tmp_path, text))


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / 'absent.yaml')


@pytest.mark.parametrize('name', ['grazing', 'overfishing', 'pollution',
                                  'desire_paths', 'bandwidth'])
def test_bundled_configs_load(name):
    config = load_config(CONFIG_DIR / f'{name}.yaml')
    assert config.scenario == name
